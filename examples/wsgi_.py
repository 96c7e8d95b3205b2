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

import logging
import time

import httpx

from notmodified.wsgi import WSGIConditionalGetMiddleware

logging.basicConfig(level=logging.DEBUG)

rendered_pages = 0


def app(environ, start_response):
    start_response(
        "200 OK",
        [
            ("Content-Type", "text/plain"),
            ("ETag", '"v1"'),
        ],
    )

    # Rendering happens only when the body is iterated, which a 304 never does
    def render():
        global rendered_pages
        rendered_pages += 1
        time.sleep(0.5)
        yield b"expensive page"

    return render()


def main():
    application = WSGIConditionalGetMiddleware(app)
    with httpx.Client(transport=httpx.WSGITransport(app=application), base_url="http://testserver") as client:
        response = client.get("/")
        print(response.status_code, response.text)

        response = client.get("/", headers={"If-None-Match": '"v1"'})
        print(response.status_code, repr(response.content))

    print("rendered pages:", rendered_pages)


if __name__ == "__main__":
    main()
