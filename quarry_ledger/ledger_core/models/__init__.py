from .account import Account
from .customer import Customer
from .fiscal_year import AccountFiscalYearBalance, FiscalYear
from .invoice import Invoice, InvoicePayment
from .journal import JournalEntry, JournalLine
from .number_series import NumberSeries
from .prepayment import CustomerPrepayment, PrepaymentApplication

__all__ = [
    "Account",
    "AccountFiscalYearBalance",
    "Customer",
    "CustomerPrepayment",
    "FiscalYear",
    "Invoice",
    "InvoicePayment",
    "JournalEntry",
    "JournalLine",
    "NumberSeries",
    "PrepaymentApplication",
]
