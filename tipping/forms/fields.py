"""
Strict fields and validators for JSON payloads fed to WTForms via ``data=``

The stock fields coerce loosely (``bool(None)`` is False, ``int(True)`` is 1),
which hides malformed client input. These keep missing values as None and
reject values of the wrong JSON type.
"""

from wtforms import BooleanField, IntegerField
from wtforms.validators import StopValidation
from wtforms.utils import unset_value


class StrictIntegerField(IntegerField):
    def process_data(self, value):
        if value is None or value is unset_value:
            self.data = None
            return
        if isinstance(value, bool):
            self.data = None
            raise ValueError(self.gettext("Not a valid integer value."))
        if isinstance(value, float) and not value.is_integer():
            self.data = None
            raise ValueError(self.gettext("Not a valid integer value."))
        try:
            self.data = int(value)
        except (ValueError, TypeError):
            self.data = None
            raise ValueError(self.gettext("Not a valid integer value.")) from None


class StrictBooleanField(BooleanField):
    def process_data(self, value):
        if value is None or value is unset_value:
            self.data = None
            return
        if not isinstance(value, bool):
            self.data = None
            raise ValueError(self.gettext("Not a valid boolean value."))
        self.data = value


class Present:
    """
    The field must carry a value. 0 and False count as values.
    """

    def __init__(self, message=None):
        self.message = message or "This field is required."

    def __call__(self, form, field):
        if field.process_errors:
            # Already reported by the field itself
            raise StopValidation()
        if field.data is None:
            raise StopValidation(self.message)


class Omittable:
    """Stop the validation chain for a missing value"""

    def __call__(self, form, field):
        if field.data is None:
            raise StopValidation()
