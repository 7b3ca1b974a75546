from .crud_booking import booking
from .crud_catalog import catalog, snapshot_rate
