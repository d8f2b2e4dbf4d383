"""Entrypoint to run the Pocket Stylist API or a one-off laundry sweep locally."""

import argparse

from stylist_app.app import PocketStylistApp


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Pocket Stylist")
    subcommands = parser.add_subparsers(dest="command")
    serve = subcommands.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8080)
    subcommands.add_parser("sweep", help="Return expired laundry to the wardrobe and exit")
    args = parser.parse_args(argv)

    if args.command == "serve":
        import uvicorn

        uvicorn.run("server.api:app", host=args.host, port=args.port, reload=False)
        return

    with PocketStylistApp() as app:
        for line in app.summary():
            print(line)


if __name__ == "__main__":
    main()
