from .base import Component, StampData, OperatingPoint  # noqa: F401
from .passive import Resistor  # noqa: F401
from .sources import CurrentSource, VoltageSource  # noqa: F401
