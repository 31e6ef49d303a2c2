from .crud_booking import booking
from . import crud_availability
from . import crud_artist_policy
from . import crud_billing
from . import crud_cooldown
from . import crud_intake
from . import crud_message
from . import crud_user
