import argparse
import asyncio
import json

from rich.console import Console

from storefront.api.routes import ShopApi


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="storefront", description="Dispatch a single storefront request."
    )
    parser.add_argument("method", help="GET or POST")
    parser.add_argument("path", help="e.g. user/login, product/all, order/place")
    parser.add_argument("body", nargs="?", default="{}", help="JSON request body")
    parser.add_argument("--token", help="bearer token for user-scoped routes")
    return parser


async def run(method: str, path: str, body: dict, token=None) -> dict:
    api = ShopApi()
    return await api.handle(method, path, body, token=token)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    console = Console()
    try:
        body = json.loads(args.body)
    except json.JSONDecodeError as e:
        console.print(f"[red]Body is not valid JSON:[/] {e}")
        return 2
    result = asyncio.run(run(args.method, args.path, body, args.token))
    console.print_json(data=result)
    return 0 if result["success"] else 1


if __name__ == "__main__":
    raise SystemExit(main())
