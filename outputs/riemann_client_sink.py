import logging
import struct

import google.protobuf.message
import riemann_client.client
import riemann_client.riemann_pb2
import riemann_client.transport

from config import Config
from errors import SinkSendError
from outputs.riemann_sink import MetricEvent

logger = logging.getLogger(__name__)

# every way a single send can fail: socket errors, a short or garbled reply, or an error response
SEND_ERRORS = (
    OSError,
    struct.error,
    google.protobuf.message.DecodeError,
    riemann_client.transport.RiemannError,
)


class CheckedTCPTransport(riemann_client.transport.TCPTransport):
    """TCP transport that raises when riemann closes the connection instead of waiting on an empty socket."""

    def _recv_exactly(self, length: int) -> bytes:
        data = b""
        while len(data) < length:
            chunk = self.socket.recv(length - len(data))
            if len(chunk) == 0:
                raise ConnectionError(f"riemann closed the connection after {len(data)} of {length} bytes")
            data += chunk
        return data

    def send(self, message):
        data = message.SerializeToString()
        self.socket.sendall(struct.pack("!I", len(data)) + data)

        length = struct.unpack("!I", self._recv_exactly(4))[0]
        response = riemann_client.riemann_pb2.Msg()
        response.ParseFromString(self._recv_exactly(length))

        if not response.ok:
            raise riemann_client.transport.RiemannError(response.error)
        return response


class RiemannSink:
    def __init__(self, client: riemann_client.client.Client):
        self.client = client

    @staticmethod
    def connect(config: Config) -> "RiemannSink":
        if config.riemann_protocol == "udp":
            transport = riemann_client.transport.UDPTransport(config.riemann_host, config.riemann_port)
        elif config.riemann_protocol == "tcp":
            transport = CheckedTCPTransport(config.riemann_host, config.riemann_port, config.riemann_timeout)
        else:
            raise ValueError(f"Unknown riemann protocol: {config.riemann_protocol}")

        transport.connect()
        logger.info(f"Connected to riemann at {config.riemann_host}:{config.riemann_port} ({config.riemann_protocol})")
        return RiemannSink(riemann_client.client.Client(transport))

    def send(self, event: MetricEvent):
        try:
            self.client.event(**event.to_riemann())
        except SEND_ERRORS as e:
            raise SinkSendError(f"failed to send event '{event.service}': {e}") from e

    def close(self):
        self.client.transport.disconnect()
