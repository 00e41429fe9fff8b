"""
Protocol classes for the seams between the relay core and the transport.

The broadcast core never imports the transport layer. Anything that can
write a payload to a client connection can be plugged in as a Deliverer.

Example:
    ```python
    class PrintDeliverer:
        async def deliver(self, connection_id: str, payload: str) -> None:
            print(connection_id, payload)


    await broadcast_core.pump("c0ffee", PrintDeliverer())
    ```
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class Deliverer(Protocol):
    """
    Protocol for writing drained messages to the network.

    Implemented by the transport layer. A raised exception means the client
    is gone; the core treats it as an implicit closure.
    """

    async def deliver(self, connection_id: str, payload: str) -> None:
        """
        Write one payload to a client.

        Args:
            connection_id: Target connection.
            payload: Text frame to send.
        """
        ...
