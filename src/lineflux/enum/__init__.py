from .precision import Precision as Precision
from .query_type import QueryType as QueryType
