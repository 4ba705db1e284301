# SpotOn: Database Models
# Import all models here for SQLAlchemy discovery

from spoton.models.building import Building            # noqa
from spoton.models.spot_type import SpotType           # noqa
from spoton.models.parking_spot import ParkingSpot     # noqa
from spoton.models.booking import Booking              # noqa
from spoton.models.notification import Notification    # noqa
from spoton.models.profile import Profile              # noqa
