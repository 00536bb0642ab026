"""CLI entry point for the shopping assistant."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from .config import load_config
from .endpoints import Assistant, EndpointResult


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="comprai",
        description="Compr.AI: assistente de compras com histórico e IA",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to the TOML config file",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )

    sub = parser.add_subparsers(dest="command")

    # chat
    chat_parser = sub.add_parser("chat", help="Ask the assistant a question")
    chat_parser.add_argument("user_id")
    chat_parser.add_argument("message")
    chat_parser.add_argument("--list", dest="list_id", default=None)
    chat_parser.add_argument(
        "--history", type=str, default=None, metavar="FILE",
        help="JSON file with prior turns [{role, content}, ...]",
    )

    # suggest
    suggest_parser = sub.add_parser("suggest", help="Suggest items for a new list")
    suggest_parser.add_argument("user_id")
    suggest_parser.add_argument("--prompt", default=None)
    suggest_parser.add_argument("--list-type", default=None)
    suggest_parser.add_argument("--max", type=int, default=None, dest="max_results")

    # validate
    validate_parser = sub.add_parser("validate", help="Validate suggested items")
    validate_parser.add_argument("prompt")
    validate_parser.add_argument(
        "items_file", help="JSON file with [{name, quantity, unit, category}, ...]"
    )

    # normalize
    normalize_parser = sub.add_parser("normalize", help="Normalize an item name")
    normalize_parser.add_argument("name")

    # receipt
    receipt_parser = sub.add_parser("receipt", help="Structure OCR text of a receipt")
    receipt_parser.add_argument("user_id")
    receipt_parser.add_argument("ocr_file", help="Text file with the OCR output")
    receipt_parser.add_argument(
        "--save", action="store_true", help="Append items to purchase/price history"
    )

    # estimate
    estimate_parser = sub.add_parser("estimate", help="Estimate the cost of a list")
    estimate_parser.add_argument("user_id")
    estimate_parser.add_argument("list_id")

    # summary
    summary_parser = sub.add_parser("summary", help="Show purchase statistics")
    summary_parser.add_argument("user_id")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    load_dotenv()
    config = load_config(args.config)
    assistant = Assistant(config)

    match args.command:
        case "chat":
            request = {
                "userId": args.user_id,
                "message": args.message,
                "listId": args.list_id,
                "conversationHistory": _read_json(args.history) if args.history else [],
            }
            result = asyncio.run(assistant.chat(request))
        case "suggest":
            request = {
                "userId": args.user_id,
                "prompt": args.prompt,
                "listType": args.list_type,
                "maxResults": args.max_results,
            }
            result = asyncio.run(assistant.suggest_items(request))
        case "validate":
            request = {
                "originalPrompt": args.prompt,
                "suggestedItems": _read_json(args.items_file),
            }
            result = asyncio.run(assistant.validate_list(request))
        case "normalize":
            result = asyncio.run(assistant.normalize_item({"rawName": args.name}))
        case "receipt":
            request = {
                "userId": args.user_id,
                "ocrText": Path(args.ocr_file).read_text(encoding="utf-8"),
                "save": args.save,
            }
            result = asyncio.run(assistant.process_receipt(request))
        case "estimate":
            request = {"userId": args.user_id, "listId": args.list_id}
            result = asyncio.run(assistant.estimate_list(request))
        case "summary":
            result = asyncio.run(assistant.summary({"userId": args.user_id}))

    _emit(result)


def _read_json(path: str):
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def _emit(result: EndpointResult) -> None:
    if result.ok:
        print(result.to_json(indent=2))
        return
    print(result.to_json(indent=2), file=sys.stderr)
    sys.exit(1)
