# Global Constants
from typing import Literal

# Kosovo municipalities used on every address
Municipality = Literal[
    "Pristina", "Mitrovica", "Peja", "Prizren", "Gjilan", "Ferizaj", "Gjakova",
    "Podujeva", "Suhareka", "Malisheva", "Vushtrri", "Drenas", "Rahovec", "Lipjan",
    "Kamenica", "Viti", "Obiliq", "Fushe Kosova", "Kllokot", "Novoberde", "Kacanik",
    "Hani i Elezit", "Mamusa", "Junik", "Decan", "Istog", "Klina", "Skenderaj",
    "Leposavic", "Zubin Potok", "Zvecan", "Mitrovica North", "Dragash", "Shtime",
    "Shterpce", "Ranillug", "Gracanica",
]

BankName = Literal[
    "ProCredit Bank", "TEB Bank", "NLB Bank", "BKT Bank", "Raiffeisen Bank", "Other",
]

ServiceFrequency = Literal["Daily", "Weekly", "Bi-weekly", "Monthly", "As Needed"]

Weekday = Literal["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

DEFAULT_COUNTRY = "Kosovo"
CURRENCY = "EUR"


class CustomerStatus:
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    PENDING = "Pending"

class EmployeeStatus:
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    ON_LEAVE = "On Leave"

class Nationality:
    KOSOVO = "Kosovo Citizen"
    EU = "EU Citizen"
    NON_EU = "Non-EU Citizen"

class ContractStatus:
    ACTIVE = "Active"
    EXPIRED = "Expired"
    TERMINATED = "Terminated"
    SUSPENDED = "Suspended"
    PENDING = "Pending"

class ScheduleStatus:
    SCHEDULED = "Scheduled"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    NO_SHOW = "No Show"

class InvoiceStatus:
    DRAFT = "Draft"
    SENT = "Sent"
    PAID = "Paid"
    OVERDUE = "Overdue"
    CANCELLED = "Cancelled"
    PARTIALLY_PAID = "Partially Paid"
