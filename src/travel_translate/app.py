"""Application entry point for Travel Translate."""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from .config.manager import ConfigManager
from .config.schemas import AppConfig
from .core.cache import TTLCache
from .core.languages import language_name
from .core.network import ConnectivityChecker
from .core.packs import BundledPackSource, HttpPackSource, OfflinePackManager, PackError, PackSource
from .core.router import TranslationService
from .core.translator import create_translator
from .infra.logging import setup_logging
from .infra.storage import JsonFileStore, KeyValueStore, PackFileStore, StorageError
from .userdata.conversations import ConversationStore
from .userdata.history import HistoryStore
from .userdata.phrasebook import Phrasebook
from .userdata.settings import SettingsStore


@dataclass
class Services:
    """Everything a front end needs, wired against one shared store."""

    store: KeyValueStore
    cache: TTLCache
    packs: OfflinePackManager
    settings: SettingsStore
    history: HistoryStore
    phrasebook: Phrasebook
    translation: TranslationService
    conversations: ConversationStore


def build_services(
    config: AppConfig,
    store: Optional[KeyValueStore] = None,
    is_connected: Optional[Callable[[], bool]] = None,
) -> Services:
    store = store if store is not None else JsonFileStore(config.storage.store_path)
    cache = TTLCache(store, prefix=config.cache.key_prefix, default_ttl_ms=config.cache.default_ttl_ms)

    source: PackSource
    if config.offline.pack_source_url:
        source = HttpPackSource(config.offline.pack_source_url, timeout_s=config.offline.download_timeout_s)
    else:
        source = BundledPackSource(delay_s=config.offline.download_delay_s)
    packs = OfflinePackManager(store, PackFileStore(config.storage.packs_dir), source=source)

    settings = SettingsStore(store)
    history = HistoryStore(store, settings, max_items=config.history.max_items)
    api = config.api
    if not api.api_key:
        api = api.model_copy(update={"api_key": settings.get_api_key() or None})
    translator = create_translator(api, use_free_api=settings.get_settings().use_free_api)
    checker = is_connected or ConnectivityChecker(config.network.probe_url, config.network.timeout_s)

    translation = TranslationService(packs, translator, checker, cache=cache, history=history)
    return Services(
        store=store,
        cache=cache,
        packs=packs,
        settings=settings,
        history=history,
        phrasebook=Phrasebook(store),
        translation=translation,
        conversations=ConversationStore(store, translation),
    )


def _build_parser(default_quality: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="travel-translate", description="Travel phrase translator")
    parser.add_argument("--config", help="Path to config.json")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    translate = commands.add_parser("translate", help="Translate a piece of text")
    translate.add_argument("text")
    translate.add_argument("--from", dest="source", default=None, help="Source language code")
    translate.add_argument("--to", dest="target", default=None, help="Target language code")
    translate.add_argument("--context", default=None, help="Travel context, e.g. restaurant")

    packs = commands.add_parser("packs", help="Manage offline language packs")
    pack_commands = packs.add_subparsers(dest="pack_command", required=True)
    pack_commands.add_parser("list", help="List installed packs")
    pack_commands.add_parser("usage", help="Show storage used by packs")
    download = pack_commands.add_parser("download", help="Download a language pack")
    download.add_argument("code")
    download.add_argument("--name", default=None)
    download.add_argument("--quality", choices=["basic", "standard", "premium"], default=default_quality)
    delete = pack_commands.add_parser("delete", help="Delete a language pack")
    delete.add_argument("code")

    offline = commands.add_parser("offline", help="Toggle offline mode")
    offline.add_argument("state", choices=["on", "off", "status"])

    cache = commands.add_parser("cache", help="Manage the response cache")
    cache.add_argument("action", choices=["clear"])
    return parser


def _run(args: argparse.Namespace, services: Services) -> int:
    if args.command == "translate":
        prefs = services.settings.get_language_preferences()
        source = args.source or prefs.source_language
        target = args.target or prefs.target_language
        result = services.translation.translate(args.text, source, target, context=args.context)
        print(f"[!] {result.text}" if result.is_offline_message else result.text)
        return 0

    if args.command == "packs":
        packs = services.packs
        if args.pack_command == "list":
            for pack in packs.get_downloaded_languages():
                print(f"{pack.code}\t{pack.name}\t{pack.quality.value}\t{pack.size_mb}MB\t{', '.join(pack.features)}")
        elif args.pack_command == "usage":
            print(f"{packs.get_total_storage_used()}MB")
        elif args.pack_command == "download":
            name = args.name or language_name(args.code)
            print(f"Downloading {name} ({args.quality})...")
            packs.download_language_pack(args.code, name, args.quality)
            print(f"✓ {name} language pack installed")
        elif args.pack_command == "delete":
            packs.delete_language_pack(args.code)
            print(f"Deleted {args.code}")
        return 0

    if args.command == "offline":
        if args.state == "status":
            print("on" if services.packs.is_offline_mode_enabled() else "off")
            return 0
        return 0 if services.packs.set_offline_mode(args.state == "on") else 1

    if args.command == "cache":
        return 0 if services.cache.invalidate_all() else 1

    return 2


def main(argv: Optional[List[str]] = None) -> int:
    """Run the Travel Translate command line.

    Args:
        argv: Optional command line arguments; defaults to ``sys.argv[1:]``.

    Returns:
        Process exit code.
    """
    config_parser = argparse.ArgumentParser(add_help=False)
    config_parser.add_argument("--config")
    known, _ = config_parser.parse_known_args(argv)
    config_manager = ConfigManager(config_path=known.config) if known.config else ConfigManager()

    args = _build_parser(config_manager.config.offline.default_quality).parse_args(argv)
    setup_logging(level=logging.DEBUG if args.verbose else logging.WARNING)

    services = build_services(config_manager.config)
    try:
        return _run(args, services)
    except (PackError, StorageError, ValueError) as exc:
        print(f"✗ {exc}")
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
