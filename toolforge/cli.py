"""Command-line client for the tool specification console.

Usage:
    toolforge serve [--host HOST] [--port PORT]
    toolforge generate --type collection --name orders [--prompt TEXT] [--refine TEXT ...] [--save]
    toolforge edit --tool TOOL [--prompt TEXT] [--save]
    toolforge models [--limit N]
    toolforge tools
"""

import argparse
import asyncio
import json
import sys

from toolforge.infra.errors import ToolSpecError


def _print_transcript(session) -> None:
    for message in session.messages:
        print(f"[{message.role}] {message.content}", file=sys.stderr)


def _finish(session, save: bool) -> int:
    from toolforge.api.dependencies import tool_catalog

    _print_transcript(session)
    if session.tool_spec is None:
        return 1

    tool_spec = session.tool_spec
    if save:
        try:
            tool_spec = tool_catalog.upsert_tool(tool_spec)
        except ToolSpecError as e:
            print(f"Save failed: {e.message}", file=sys.stderr)
            return 1
        print(f'Saved tool "{tool_spec.name}" ({tool_spec.id})', file=sys.stderr)

    print(json.dumps(tool_spec.to_document(), indent=2))
    return 0 if session.error is None else 1


async def _generate(args) -> int:
    from toolforge.api.dependencies import pipeline, tool_catalog
    from toolforge.models.tool_spec import DataType
    from toolforge.services.console_session import ConsoleSession

    tool_catalog.init_schema()
    session = ConsoleSession(pipeline, model=args.model)
    session.select(data_type=DataType(args.type), name=args.name, db_name=args.db)

    ok = await session.confirm(args.prompt)
    for prompt in args.refine or []:
        if not ok and session.tool_spec is None:
            break
        ok = await session.regenerate(prompt)

    return _finish(session, args.save)


async def _edit(args) -> int:
    from toolforge.api.dependencies import pipeline, tool_catalog
    from toolforge.services.console_session import ConsoleSession

    tool_catalog.init_schema()
    tool = tool_catalog.get_tool(args.tool)
    if tool is None:
        print(f'Tool with ID "{args.tool}" not found.', file=sys.stderr)
        return 1

    session = ConsoleSession(pipeline, model=args.model)
    session.load_tool(tool)
    if args.prompt:
        await session.regenerate(args.prompt)
    return _finish(session, args.save)


async def _models(args) -> int:
    from toolforge.services.model_catalog import clamp_limit, list_models

    listing = await list_models(clamp_limit(str(args.limit)))
    print(json.dumps(listing.model_dump(exclude_none=True), indent=2))
    return 0


def _tools(args) -> int:
    from toolforge.api.dependencies import tool_catalog

    tool_catalog.init_schema()
    for tool in tool_catalog.list_tools():
        source = tool.collection_name or tool.table_name
        state = "enabled" if tool.enabled else "disabled"
        print(f"{tool.name}\t{source}\t{state}\t{tool.id}")
    return 0


def _serve(args) -> int:
    import uvicorn

    uvicorn.run(
        "toolforge.main:app",
        host=args.host,
        port=args.port,
        timeout_keep_alive=30,
        timeout_graceful_shutdown=30,
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="toolforge", description="Tool specification console")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    generate = subparsers.add_parser("generate", help="Generate a tool specification")
    generate.add_argument("--type", choices=["collection", "table"], required=True)
    generate.add_argument("--name", required=True, help="Collection or table name")
    generate.add_argument("--db", default=None, help="Database name")
    generate.add_argument("--prompt", default=None, help="Initial request")
    generate.add_argument("--refine", action="append", help="Follow-up request (repeatable)")
    generate.add_argument("--model", default=None, help="provider:model")
    generate.add_argument("--save", action="store_true", help="Save the final specification")

    edit = subparsers.add_parser("edit", help="Refine a saved tool specification")
    edit.add_argument("--tool", required=True, help="Tool id or name")
    edit.add_argument("--prompt", default=None, help="Refinement request")
    edit.add_argument("--model", default=None, help="provider:model")
    edit.add_argument("--save", action="store_true", help="Save the refined specification")

    models = subparsers.add_parser("models", help="List available models")
    models.add_argument("--limit", type=int, default=6)

    subparsers.add_parser("tools", help="List saved tools")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "serve":
        return _serve(args)
    if args.command == "tools":
        return _tools(args)

    handler = {"generate": _generate, "edit": _edit, "models": _models}[args.command]
    return asyncio.run(handler(args))


if __name__ == "__main__":
    sys.exit(main())
