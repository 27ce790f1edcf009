from ._base import Operation
from ._registry import get_operation, get_operations, register
