#!/usr/bin/env python3

import logging
import os
import re
import requests
import sys

from contextlib import contextmanager
from dataclasses import dataclass

EMPLOYEES_HOST = "employees-dot-myapp-12345.appspot.com"
HEADER = "Company service called"
PREFIX = "Response from Employees service: "
TIMEOUT = 10

log = logging.getLogger("company")
log.setLevel(logging.INFO)

@dataclass(frozen=True)
class Config:
    scheme: str
    host: str
    path: str
    port: int = 0
    echo: bool = True

    @property
    def url(self):
        port = f":{self.port}" if self.port else ""
        return f"{self.scheme}://{self.host}{port}{self.path}"

CONFIGS = {
    "production": Config("https", EMPLOYEES_HOST, "/employees/v1"),
    "development": Config("http", EMPLOYEES_HOST, "/employees/v1", 8080),
    # Fixed target, lines go to the log instead of the caller.
    "probe": Config("http", EMPLOYEES_HOST, "/employees/", 8080, echo=False),
}

def environment(environ=os.environ):
    if name := environ.get("COMPANY_ENV"):
        return name
    if (environ.get("GAE_ENV", "").startswith("standard") or
        environ.get("SERVER_SOFTWARE", "").startswith("Google App Engine/")):
        return "production"
    return "development"

def load_config(environ=os.environ):
    name = environment(environ)
    if name not in CONFIGS:
        raise ValueError(f"Bad {name=}")
    return CONFIGS[name]

CONFIG = load_config()

# A trailing \r might be the first half of \r\n, hold it for the next chunk.
LINE_BREAK = re.compile(r"\r\n|\r(?=.)|\n")

def split_lines(chunks):
    buffer = ""
    for chunk in chunks:
        *lines, buffer = LINE_BREAK.split(buffer + chunk)
        yield from lines
    if buffer.endswith("\r"):
        yield buffer[:-1]
    elif buffer:
        yield buffer

@contextmanager
def upstream(url):
    with requests.get(url, stream=True, timeout=TIMEOUT) as response:
        response.raise_for_status()
        if "charset" not in response.headers.get("Content-Type", ""):
            response.encoding = "utf-8"
        yield split_lines(response.iter_content(chunk_size=None, decode_unicode=True))

def relay(config, write):
    with upstream(config.url) as lines:
        if config.echo:
            write(HEADER)
        for line in lines:
            if config.echo:
                write(PREFIX + line)
            else:
                log.info(line)

def response(status_code, body):
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "text/plain"},
        "body": body,
    }

def lambda_handler(event, context):
    if (method := event.get("httpMethod", "GET")) != "GET":
        return response(405, f"Bad {method=}")
    lines = []
    relay(CONFIG, lines.append)
    return response(200, "".join(f"{line}\n" for line in lines))

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    relay(CONFIGS[sys.argv[1]] if len(sys.argv) > 1 else CONFIG, print)
