from .json_utils import dumps
from .errors import error_response
from .email import send_email
from .validation import normalize_email, validate_email, validate_password
from .refund_policy import is_refund_eligible
