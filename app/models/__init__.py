from app.models.employee import Employee
from app.models.payroll_record import PayrollRecord
from app.models.payroll_transaction import PayrollTransaction
from app.models.timesheet import Timesheet

__all__ = [
    "Employee",
    "PayrollRecord",
    "PayrollTransaction",
    "Timesheet",
]
