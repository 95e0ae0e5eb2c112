"""
Demo data loaded into a fresh ledger store.
"""
from schemas import Agent, Collection, Retailer, Transaction, User

AGENTS = [
    Agent(id="A001", name="Rajesh Kumar"),
    Agent(id="A002", name="Suresh Singh"),
]

RETAILERS = [
    Retailer(id="R001", name="RAJA MOBILES", partner_id="0661548615", pending_balance=5000, last_collection_date="2023-10-25"),
    Retailer(id="R002", name="SRI VARI COMMUNICATIONS", partner_id="0661548616", pending_balance=12500, last_collection_date="2023-10-26"),
    Retailer(id="R003", name="AMMAN CELL POINT", partner_id="0661548617", pending_balance=0, last_collection_date="2023-10-27"),
    Retailer(id="R004", name="NEW MOBILE WORLD", partner_id="0661548618", pending_balance=7800, last_collection_date="2023-10-24"),
    Retailer(id="R005", name="FRIENDS TELECOM", partner_id="0661548619", pending_balance=3200, last_collection_date="2023-10-26"),
    Retailer(id="R006", name="VICTORY MOBILES", partner_id="0661548620", pending_balance=21000, last_collection_date="2023-10-23"),
]

TRANSACTIONS = [
    Transaction(id="T001", retailer_id="R001", type="Auto-refill", time="2023-10-27T10:02:00", amount=3075, commission_rate=3),
    Transaction(id="T002", retailer_id="R002", type="Push order", time="2023-10-27T11:30:00", amount=5000, commission_rate=2.5),
    Transaction(id="T003", retailer_id="R004", type="Auto-refill", time="2023-10-27T12:15:00", amount=2500, commission_rate=3),
    Transaction(id="T004", retailer_id="R005", type="Auto-refill", time="2023-10-26T09:00:00", amount=1500, commission_rate=3),
    Transaction(id="T005", retailer_id="R006", type="Push order", time="2023-10-26T14:00:00", amount=10000, commission_rate=2.5),
    Transaction(id="T006", retailer_id="R002", type="Auto-refill", time="2023-10-26T16:45:00", amount=7500, commission_rate=3),
]

COLLECTIONS = [
    Collection(id="C001", retailer_id="R003", agent_id="A001", amount=2000, method="Cash", status="Verified", date="2023-10-27"),
    Collection(id="C002", retailer_id="R001", agent_id="A002", amount=1500, method="UPI", status="Pending", date="2023-10-27", proof_url="https://picsum.photos/200"),
    Collection(id="C003", retailer_id="R005", agent_id="A001", amount=3200, method="Cash", status="Verified", date="2023-10-26"),
    Collection(id="C004", retailer_id="R004", agent_id="A002", amount=5000, method="UPI", status="Verified", date="2023-10-26", proof_url="https://picsum.photos/200"),
]

CURRENT_USER = User(
    id="U001",
    name="John Doe",
    email="owner@amscorp.com",
    role="Owner",
    profile_picture_url="https://picsum.photos/100",
    company_logo_url="",
)
