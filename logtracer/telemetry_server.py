import asyncio
import os

import aiofiles
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse

from logtracer.config import DEFAULT_ACTIVITY_LOG

RECENT_LINES = 50
POLL_INTERVAL = 0.1


async def tail_activity_log(log_file_path: str, poll_interval: float = POLL_INTERVAL):
    """
    Yield lines appended to the log file after the call as Server-Sent Events.
    Starts over from the top if the file gets truncated.
    """
    if not os.path.exists(log_file_path):
        os.makedirs(os.path.dirname(log_file_path) or ".", exist_ok=True)
        with open(log_file_path, "w") as f:
            f.write("")

    async with aiofiles.open(log_file_path, mode="r", encoding="utf-8") as f:
        await f.seek(0, os.SEEK_END)
        current_position = await f.tell()
        while True:
            await asyncio.sleep(poll_interval)
            new_size = os.path.getsize(log_file_path)
            if new_size > current_position:
                await f.seek(current_position)
                line = await f.readline()
                while line:
                    yield f"data: {line.rstrip()}\n\n"
                    current_position = await f.tell()
                    line = await f.readline()
            elif new_size < current_position:  # truncated
                await f.seek(0)
                current_position = 0


def create_app(log_file_path: str = None) -> FastAPI:
    """
    Activity viewer for the file written by ActivityExporter.
    """
    log_file_path = log_file_path or os.getenv("LOGTRACER_ACTIVITY_LOG", DEFAULT_ACTIVITY_LOG)

    app = FastAPI(title="logtracer activity")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/telemetry/stream")
    async def stream_telemetry():
        """
        Streams new activity lines as Server-Sent Events by tailing the log file.
        """
        return StreamingResponse(tail_activity_log(log_file_path), media_type="text/event-stream")

    @app.get("/telemetry/recent")
    async def get_recent_telemetry():
        """
        Returns the last lines of the activity log.
        """
        if not os.path.exists(log_file_path):
            return {"data": "Log file not found"}

        async with aiofiles.open(log_file_path, mode="r", encoding="utf-8") as f:
            content = await f.read()
        lines = content.splitlines()[-RECENT_LINES:]

        return {"data": "\n".join(lines)}

    return app


if __name__ == "__main__":
    uvicorn.run(create_app(), host="0.0.0.0", port=int(os.getenv("PORT", 5001)))
