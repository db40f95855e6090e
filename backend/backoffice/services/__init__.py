# Importing the document services registers their approval decision handlers.
from . import procurement_service, expense_service  # noqa: F401
