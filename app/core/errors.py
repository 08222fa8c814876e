class NotFoundError(LookupError):
    """A referenced row (employee, payroll record) does not exist."""
