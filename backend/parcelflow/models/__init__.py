# Importing every model registers its table on Base.metadata
# (Alembic autogenerate and the test suite's create_all rely on it).
from parcelflow.models.user import User
from parcelflow.models.rider import Rider
from parcelflow.models.parcel import Parcel
from parcelflow.models.payment import Payment
from parcelflow.models.cashout import Cashout
from parcelflow.models.tracking import TrackingEvent

__all__ = ["User", "Rider", "Parcel", "Payment", "Cashout", "TrackingEvent"]
