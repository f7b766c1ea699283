# FleetDesk Database Models
# Import all models here for SQLAlchemy discovery

from fleetdesk.models.branch import Branch                        # noqa
from fleetdesk.models.vehicle_category import VehicleCategory     # noqa
from fleetdesk.models.vehicle import Vehicle                      # noqa
from fleetdesk.models.user import User                            # noqa
from fleetdesk.models.maintenance_log import MaintenanceLog       # noqa
from fleetdesk.models.snag import Snag                            # noqa
from fleetdesk.models.snag_assignment import SnagAssignment       # noqa
from fleetdesk.models.snag_resolution import SnagResolution       # noqa
from fleetdesk.models.booking import Booking                      # noqa
from fleetdesk.models.booking_document import BookingDocument     # noqa
from fleetdesk.models.maintenance_work_item import MaintenanceWorkItem  # noqa
from fleetdesk.models.mileage_log import MileageLog                # noqa
from fleetdesk.models.vehicle_activity_log import VehicleActivityLog  # noqa
