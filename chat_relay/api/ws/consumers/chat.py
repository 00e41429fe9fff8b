from fastapi import APIRouter

from chat_relay.api.ws.websocket import RoomWebSocketEndpoint

router = APIRouter()


class Chat(RoomWebSocketEndpoint):
    """
    Chat relay endpoint.

    `/chat` joins the default room, `/chat/{room_id}` joins the named room.
    Every text frame is relayed verbatim to the other members of the room.
    """


router.add_websocket_route("/chat", Chat, name="chat_default_room")
router.add_websocket_route("/chat/{room_id}", Chat, name="chat_room")
