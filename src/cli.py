import argparse
import logging
import sys
from pathlib import Path

from wg_provision.errors import ProvisionError
from wg_provision.models import ProvisionPaths
from wg_provision.provision import check_artifacts, provision_clients, resolve_endpoint
from wg_provision.report import print_report, write_qr
from wg_provision.server import build_server
from wg_provision.service import activate, install_wireguard
from wg_provision.settings import DEFAULT_CONFIG_PATH, load_settings
from wg_provision.firewall import detect_wan_iface
from wg_provision.ipam import check_capacity


def _paths(args) -> ProvisionPaths:
    return ProvisionPaths(
        wireguard_dir=Path(args.wireguard_dir),
        interface=args.interface,
    )


# ---------------------------------------------------
# Commande : install (provisioning complet)
# ---------------------------------------------------

def cmd_install(args):
    settings = load_settings(Path(args.config))
    paths = _paths(args)

    print(f"[*] {len(settings.users)} utilisateur(s) : {', '.join(settings.users)}")

    # Tout ce qui peut échouer sans rien modifier passe en premier
    check_capacity(len(settings.users))
    check_artifacts(paths, settings.users, force=args.force)
    wan_iface = detect_wan_iface()
    endpoint = resolve_endpoint(settings, override=args.endpoint)
    print(f"[+] Interface de sortie : {wan_iface}")
    print(f"[+] Endpoint client     : {endpoint}")

    if args.skip_install:
        print("[!] Installation des paquets ignorée (--skip-install).")
    else:
        print("[*] Installation de WireGuard et du module noyau...")
        install_wireguard()

    print("[*] Génération des clés et de la configuration serveur...")
    server_keys = build_server(settings, paths, wan_iface=wan_iface)
    print(f"[+] Fichier serveur : {paths.server_config}")

    print("[*] Génération des clients...")
    records = provision_clients(
        settings,
        paths,
        server_public_key=server_keys.public_key,
        endpoint=endpoint,
    )
    for r in records:
        print(f"[+] {r.name} -> {r.peer_address}")

    if args.qr:
        for r in records:
            path = write_qr(r.config_path.read_text(encoding="utf-8"), paths.client_qr(r.name))
            print(f"[+] QR code généré : {path}")

    if args.no_start:
        print("[*] Activation du forwarding IP...")
        activate(paths, start=False)
        print("[!] Service non démarré (--no-start). Pour l'activer :")
        print(f"    sudo systemctl enable --now {paths.service_unit}")
    else:
        print(f"[*] Activation du forwarding IP et de {paths.service_unit}...")
        activate(paths)

    print_report(records, settings, paths)
    return 0


# ---------------------------------------------------
# Commande : qr
# ---------------------------------------------------

def cmd_qr(args):
    paths = _paths(args)
    conf_path = paths.client_config(args.name)

    if not conf_path.is_file():
        print(f"[ERREUR] Client introuvable : {conf_path}", file=sys.stderr)
        return 1

    path = write_qr(conf_path.read_text(encoding="utf-8"), paths.client_qr(args.name))
    print(f"[OK] QR code généré : {path}")
    return 0


# ---------------------------------------------------
# CLI / Parser
# ---------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="wg-provision")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="cmd")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--wireguard-dir", default="/etc/wireguard")
    common.add_argument("--interface", default="wg0")

    # install
    p_install = sub.add_parser("install", parents=[common])
    p_install.add_argument("-c", "--config", default=str(DEFAULT_CONFIG_PATH))
    p_install.add_argument("--endpoint", required=False)
    p_install.add_argument("--force", action="store_true",
                           help="overwrite existing keys and configs")
    p_install.add_argument("--skip-install", action="store_true")
    p_install.add_argument("--no-start", action="store_true",
                           help="enable IP forwarding but do not start the service")
    p_install.add_argument("--qr", action="store_true",
                           help="also write <user>.png QR codes")
    p_install.set_defaults(func=cmd_install)

    # qr
    p_qr = sub.add_parser("qr", parents=[common])
    p_qr.add_argument("name")
    p_qr.set_defaults(func=cmd_qr)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return args.func(args)
    except ProvisionError as exc:
        print(f"[ERREUR] {exc.step} : {exc}", file=sys.stderr)
    except OSError as exc:
        # permissions, --wireguard-dir qui pointe sur un fichier, disque plein...
        print(f"[ERREUR] {exc}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
