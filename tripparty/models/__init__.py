# tripparty/models/__init__.py
from tripparty.core.database import Base  # re-export for convenience

# Import all model modules so their tables attach to Base.metadata
from tripparty.models.user import User
from tripparty.models.party import Party, PartyMember
from tripparty.models.message import Message
from tripparty.models.advisor_message import AdvisorMessage
from tripparty.models.destination import Destination

__all__ = [
    "Base",
    "User",
    "Party",
    "PartyMember",
    "Message",
    "AdvisorMessage",
    "Destination",
]
