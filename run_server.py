"""
Entry point for running the relay with uvicorn.

Host and port come from the HOST and PORT environment variables.
"""

import os

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "chat_relay:application",
        factory=True,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8080")),
    )
