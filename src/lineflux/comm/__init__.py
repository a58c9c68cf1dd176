from .client import InfluxClient as InfluxClient
from .config import ClientConfig as ClientConfig, Credentials as Credentials
from .dispatch import HttpRequest as HttpRequest, build_request as build_request
from .transport import Transport as Transport, HttpxTransport as HttpxTransport
