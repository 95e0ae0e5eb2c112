"""
Schemas for the Retailer Ledger API

Each Pydantic model maps to one in-memory collection of the ledger store
(retailer, transaction, collection, agent) or to a request/response shape.
Attributes are snake_case in Python and camelCase on the wire.
"""
from typing import Optional, List, Literal, Union, Dict
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

TransactionType = Literal["Auto-refill", "Push order"]
CollectionMethod = Literal["Cash", "UPI"]
CollectionStatus = Literal["Verified", "Pending"]
UserRole = Literal["Owner", "Admin", "Agent"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Core Master Data
class Retailer(CamelModel):
    """
    Merchant account carrying an outstanding balance
    Collection: "retailer"
    """
    id: str
    name: str
    partner_id: str = Field(..., pattern=r"^\d{10}$", description="Exactly 10 digits")
    pending_balance: float = Field(..., ge=0)
    last_collection_date: Optional[str] = Field(None, description="YYYY-MM-DD")


class RetailerIn(CamelModel):
    """
    Candidate retailer as submitted by the form. Fields are loose on purpose:
    the ledger validator reports every problem per field.
    """
    id: Optional[str] = None
    name: Optional[str] = None
    partner_id: Optional[str] = None
    pending_balance: Optional[float] = None
    last_collection_date: Optional[str] = None


class Agent(CamelModel):
    id: str
    name: str


# Ledger
class Transaction(CamelModel):
    """
    Wallet credit billed to a retailer
    Collection: "transaction"
    """
    id: str
    retailer_id: str
    type: TransactionType
    time: str = Field(..., description="ISO-8601 timestamp")
    amount: float = Field(..., gt=0)
    commission_rate: float = Field(..., allow_inf_nan=False, description="Percentage, may be fractional")


class TransactionIn(CamelModel):
    id: Optional[str] = None
    retailer_id: str
    type: TransactionType
    time: str
    amount: Optional[Union[float, str]] = None
    commission_rate: float = Field(0.0, allow_inf_nan=False)


class TransactionRow(Transaction):
    """Transaction enriched for list views."""
    net_amount: int
    retailer_name: str


class Collection(CamelModel):
    """
    Cash or UPI payment received from a retailer by an agent
    Collection: "collection"
    """
    id: str
    retailer_id: str
    agent_id: str
    amount: float = Field(..., gt=0)
    method: CollectionMethod
    status: CollectionStatus
    date: str = Field(..., description="YYYY-MM-DD")
    proof_url: Optional[str] = None


# Profile
class User(CamelModel):
    id: str
    name: str
    email: str
    role: UserRole
    profile_picture_url: str = ""
    company_logo_url: str = Field("", description="Empty renders the placeholder mark")


class UserUpdate(CamelModel):
    """Fields of the profile that may be changed. Unset fields are kept."""
    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[UserRole] = None
    profile_picture_url: Optional[str] = None
    company_logo_url: Optional[str] = None


# Views
class ChartPoint(CamelModel):
    name: str
    collections: float = Field(0.0, alias="Collections")  # chart series key


class PieSlice(CamelModel):
    name: str
    value: float


class DashboardStats(CamelModel):
    total_collected_today: float
    total_pending: float
    cash_collected_today: float
    upi_collected_today: float
    top_pending_retailers: List[Retailer]
    weekly_overview_data: List[ChartPoint] = []
    payment_method_data: List[PieSlice] = []


class RetailerRollup(CamelModel):
    retailer: Optional[Retailer] = None
    transactions: List[Transaction] = []
    collections: List[Collection] = []


class ValidationFailure(BaseModel):
    """Per-field messages for a rejected write. Returned, never raised."""
    errors: Dict[str, str]
