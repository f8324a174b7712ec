from .entity import Entity, UserProfile
from .number_series import NumberSeries
