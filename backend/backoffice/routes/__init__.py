from flask import jsonify, request


def respond(result):
    """Serialize a CommandResult with its HTTP status."""
    return jsonify(result.to_dict()), result.status_code


def json_body():
    return request.get_json(silent=True)
