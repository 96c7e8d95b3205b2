# /// script
# requires-python = ">=3.9"
# dependencies = [
#     "notmodified",
#     "httpx",
# ]
#
# [tool.uv.sources]
# notmodified = { path = "../", editable = true }
# ///

import asyncio
import hashlib
import logging

import httpx

from notmodified import ConditionalOptions
from notmodified.asgi import ASGIConditionalGetMiddleware

logging.basicConfig(level=logging.DEBUG)

CONTENT = b"<h1>Hello, World!</h1>"
ETAG = '"' + hashlib.sha256(CONTENT).hexdigest()[:16] + '"'


async def app(scope, receive, send):
    await send(
        {
            "type": "http.response.start",
            "status": 200,
            "headers": [
                (b"content-type", b"text/html"),
                (b"content-length", str(len(CONTENT)).encode()),
                (b"etag", ETAG.encode()),
                (b"last-modified", b"Mon, 01 Jan 2024 00:00:00 GMT"),
            ],
        }
    )
    await send({"type": "http.response.body", "body": CONTENT})


async def main():
    middleware = ASGIConditionalGetMiddleware(app, options=ConditionalOptions(date_comparison="parsed"))
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=middleware), base_url="http://testserver") as client:
        first = await client.get("/")
        print(first.status_code, first.headers["etag"], len(first.content))

        second = await client.get("/", headers={"If-None-Match": first.headers["etag"]})
        print(second.status_code, dict(second.headers), second.content)

        third = await client.get("/", headers={"If-Modified-Since": "Tue, 02 Jan 2024 00:00:00 GMT"})
        print(third.status_code)


if __name__ == "__main__":
    asyncio.run(main())
