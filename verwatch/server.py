from __future__ import annotations

import argparse

import uvicorn


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="verwatch", description="Run the version watch service.")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8765)
    parser.add_argument("--log-level", default="info")
    args = parser.parse_args(argv)

    uvicorn.run("verwatch.main:app", host=args.host, port=args.port, reload=False, log_level=args.log_level)


if __name__ == "__main__":
    main()
