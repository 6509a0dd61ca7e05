"""Business-logic managers for the orchestrator.

Managers wrap the stores and raise domain exceptions (``LookupError``,
``ValueError`` subclasses), never HTTP exceptions -- that translation is the
router's responsibility.
"""
