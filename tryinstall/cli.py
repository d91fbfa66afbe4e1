#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
cli.py — CLI do tryinstall

Comandos:
- install <feature>   tenta instalar a feature, fingindo os pacotes ausentes
- show                mostra o manifesto atual do jar fictício
- config              get/set/list/reset da configuração
"""

from __future__ import annotations
import argparse
import json
import os
import sys
from typing import Any

from tryinstall.modules import config as config_mod
from tryinstall.modules import log as log_mod
from tryinstall.modules import manifest as manifest_mod
from tryinstall.modules.errors import TryInstallError
from tryinstall.modules.features import FeatureInstaller
from tryinstall.modules.jolokia import JolokiaClient
from tryinstall.modules.provider import DependencyProvider
from tryinstall.modules.resolve import ResolveSession
from tryinstall.modules.runtime import KarafRuntime

# ANSI colors simples
C = {
    "reset": "\033[0m",
    "red": "\033[31m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "cyan": "\033[36m",
    "bold": "\033[1m",
}

logger = log_mod.get_logger("cli")


def color(text: str, col: str) -> str:
    return f"{C.get(col, '')}{text}{C['reset']}"


def _print_json_or_plain(data: Any, as_json: bool) -> None:
    if as_json:
        print(json.dumps(data, ensure_ascii=False, indent=2))
    else:
        if isinstance(data, dict):
            for k, v in data.items():
                print(f"{color(str(k), 'cyan')}: {v}")
        elif isinstance(data, list):
            for item in data:
                print(item)
        else:
            print(data)


def _setup_logging(verbose: bool) -> None:
    log_mod.setup(config_mod.get("log_dir"))
    log_mod.set_level("debug" if verbose else "info")


def _workspace(args) -> str:
    if getattr(args, "workspace", None):
        return os.path.abspath(args.workspace)
    return config_mod.workspace_path(getattr(args, "karaf_home", None))


def _make_client(args) -> JolokiaClient:
    return JolokiaClient(
        getattr(args, "url", None) or config_mod.get("jolokia_url"),
        user=getattr(args, "user", None) or config_mod.get("jolokia_user"),
        password=getattr(args, "password", None) or config_mod.get("jolokia_password"),
        timeout=float(config_mod.get("http_timeout")),
    )


def _manifest_defaults(runtime: KarafRuntime) -> manifest_mod.ManifestDefaults:
    build_jdk = config_mod.get("build_jdk") or runtime.jvm_version()
    return manifest_mod.ManifestDefaults(
        build_jdk=str(build_jdk),
        built_by=config_mod.get("built_by"),
        created_by=config_mod.get("built_by"),
        bundle_name=config_mod.get("bundle_name"),
        bundle_symbolic_name=config_mod.get("bundle_symbolic_name"),
        bundle_description=config_mod.get("bundle_description"),
    )


def build_session(args):
    """Monta cliente, runtime, provider e sessão a partir de args + config."""
    client = _make_client(args)
    runtime = KarafRuntime(client)
    provider = DependencyProvider(
        runtime,
        _workspace(args),
        defaults=_manifest_defaults(runtime),
        jar_name=config_mod.get("jar_name"),
        poll_interval=float(config_mod.get("poll_interval")),
        poll_attempts=int(config_mod.get("poll_attempts")),
    )
    installer = FeatureInstaller(client, timeout=float(config_mod.get("install_timeout")))
    return provider, ResolveSession(installer, provider)


# ---------------------------
# Command handlers
# ---------------------------

def cmd_install(args):
    """
    tryinstall install <feature> [--workspace DIR] [--karaf-home DIR] [--url URL]
    """
    logger.debug("[Comando] tryinstall para '%s'", args.feature)
    try:
        provider, session = build_session(args)
        provider.initialize()
    except TryInstallError as e:
        logger.debug("Falha na preparação", exc_info=True)
        print(color(f"[ERRO] {e}", "red"), file=sys.stderr)
        return 2

    result = session.run(args.feature)
    if result.ok:
        print(color(f"[OK] Feature {args.feature} instalada", "green"))
        if result.exports:
            print(color("Pacotes fingidos:", "yellow"))
    else:
        print(color(f"[ERRO] {result.error}", "red"), file=sys.stderr)
        if result.error.__cause__ is not None:
            print(color(f"  causa: {result.error.__cause__}", "red"), file=sys.stderr)
        raw = getattr(result.error, "raw_message", "")
        if raw:
            print(color(f"  mensagem original: {raw}", "red"), file=sys.stderr)
    if getattr(args, "json", False):
        _print_json_or_plain(result.as_dict(), True)
    else:
        _print_json_or_plain([str(c) for c in result.exports], False)
    return 0 if result.ok else 2


def cmd_show(args):
    """
    tryinstall show [--workspace DIR] [--karaf-home DIR]
    """
    try:
        path = os.path.join(_workspace(args), config_mod.get("jar_name"))
    except TryInstallError as e:
        print(color(f"[ERRO] {e}", "red"), file=sys.stderr)
        return 2
    if not os.path.isfile(path):
        print(color(f"[WARN] Jar fictício não encontrado: {path}", "yellow"))
        return 1
    _print_json_or_plain(manifest_mod.read_manifest(path), getattr(args, "json", False))
    return 0


def cmd_config(args):
    """
    tryinstall config get|set|list|reset [key] [value] [--system]
    """
    action = args.action
    if action == "list":
        _print_json_or_plain(config_mod.all(), getattr(args, "json", False))
        return 0
    if action == "reset":
        config_mod.reset(system=args.system)
        print(color("[OK] Configuração restaurada", "green"))
        return 0
    if not args.key:
        print(color(f"[ERRO] '{action}' exige uma chave", "red"), file=sys.stderr)
        return 2
    if action == "get":
        print(config_mod.get(args.key))
        return 0
    # set
    if args.value is None:
        print(color("[ERRO] 'set' exige um valor", "red"), file=sys.stderr)
        return 2
    try:
        config_mod.set(args.key, args.value, system=args.system)
    except TryInstallError as e:
        print(color(f"[ERRO] {e}", "red"), file=sys.stderr)
        return 2
    print(color(f"[OK] {args.key} = {args.value}", "green"))
    return 0


def _add_workspace_args(p):
    p.add_argument("--workspace", "-w", default=None,
                   help="Diretório do jar fictício (padrão: <karaf_home>/data/tmp/tryinstall)")
    p.add_argument("--karaf-home", default=None, help="KARAF_HOME do container")


def build_parser():
    p = argparse.ArgumentParser(prog="tryinstall",
                                description="tryinstall - instala uma feature fingindo os pacotes ausentes")
    p.add_argument("--verbose", "-v", action="store_true", help="Modo verboso")
    p.add_argument("--json", action="store_true", help="Imprime JSON quando aplicável")
    sub = p.add_subparsers(dest="command")

    # install
    si = sub.add_parser("install", aliases=["try"], help="Tentar instalar uma feature")
    si.add_argument("feature", help="Feature a instalar (nome/versão, versão opcional)")
    _add_workspace_args(si)
    si.add_argument("--url", default=None, help="URL do Jolokia")
    si.add_argument("--user", default=None)
    si.add_argument("--password", default=None)
    si.set_defaults(func=cmd_install)

    # show
    ss = sub.add_parser("show", help="Mostrar manifesto do jar fictício")
    _add_workspace_args(ss)
    ss.set_defaults(func=cmd_show)

    # config
    sc = sub.add_parser("config", help="Gerenciar configuração do tryinstall")
    sc.add_argument("action", choices=["get", "set", "list", "reset"], help="Ação sobre a configuração")
    sc.add_argument("key", nargs="?", help="Chave da configuração")
    sc.add_argument("value", nargs="?", help="Valor (para set)")
    sc.add_argument("--system", action="store_true", help="Salvar/operar no config global (/etc)")
    sc.set_defaults(func=cmd_config)

    return p


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    _setup_logging(getattr(args, "verbose", False))

    try:
        rc = args.func(args)
    except Exception as e:
        logger.exception("Erro ao executar comando")
        print(color(f"[ERRO] {e}", "red"), file=sys.stderr)
        sys.exit(1)
    sys.exit(rc if isinstance(rc, int) else 0)


if __name__ == "__main__":
    main()
