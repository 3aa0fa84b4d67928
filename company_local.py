#!/usr/bin/env python3

import logging
import os

from company import CONFIG
from company import log
from company import relay
from http.server import BaseHTTPRequestHandler
from http.server import ThreadingHTTPServer

class Handler(BaseHTTPRequestHandler):
    def do_GET(self):
        self.started = False
        try:
            relay(self.server.config, self.write)
        except Exception:
            if self.started:
                raise
            log.exception("Employees service call failed")
            self.send_error(500)
            return
        if not self.started:
            self.start()

    def start(self):
        # Headers wait for the upstream call to open,
        # so a failed call can still get a clean 500.
        self.send_response(200)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.end_headers()
        self.started = True

    def write(self, line):
        if not self.started:
            self.start()
        self.wfile.write(f"{line}\n".encode())
        self.wfile.flush()

def make_server(config, host, port):
    server = ThreadingHTTPServer((host, port), Handler)
    server.config = config
    return server

def serve(config, host, port):
    make_server(config, host, port).serve_forever()

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    host = os.environ.get("HOST", "127.0.0.1")
    port = int(os.environ.get("PORT", 8001))
    print(f"Starting company service at http://{host}:{port}/ -> {CONFIG.url}")
    serve(CONFIG, host, port)
