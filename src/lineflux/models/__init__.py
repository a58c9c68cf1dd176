from .values import (
    Value as Value,
    String as String,
    Float as Float,
    Integer as Integer,
    UnsignedInteger as UnsignedInteger,
    Boolean as Boolean,
    to_value as to_value,
)
from .timestamp import Timestamp as Timestamp, wall_clock as wall_clock
