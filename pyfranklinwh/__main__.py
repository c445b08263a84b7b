# pyFranklinWH Module - Command Line
# -*- coding: utf-8 -*-
"""
 Python module to interface with a FranklinWH aGate

 Command Line:
    python -m pyfranklinwh <get|set|switches|version>

 Credentials are read from the environment (or a .env file):
    FRANKLINWH_USERNAME, FRANKLINWH_PASSWORD, FRANKLINWH_GATEWAY, FRANKLINWH_BASE_URL
"""

import argparse
import json
import os
import sys

import dotenv

from pyfranklinwh import BASE_URL, Gateway, PyFranklinWHException, set_debug, version


def build_parser():
    p = argparse.ArgumentParser(prog="pyfranklinwh", description=f"pyFranklinWH Module v{version}")
    subparsers = p.add_subparsers(dest="command", title='commands (run <command> -h to see usage information)',
                                  required=True)

    get_args = subparsers.add_parser("get", help='Get operating mode, reserve and power levels')
    get_args.add_argument("-format", type=str, default="text", help="Output format: text, json, csv")

    set_args = subparsers.add_parser("set", help='Set operating mode and reserve level')
    set_args.add_argument("-mode", type=str, default=None, help="Operating mode: tou, self, or emer")
    set_args.add_argument("-reserve", type=int, default=None, help="Battery reserve level (5-100)")

    switch_args = subparsers.add_parser("switches", help='List or set smart switches')
    switch_args.add_argument("-on", type=str, action="append", default=[], help="Switch id to turn on (sw1-sw3)")
    switch_args.add_argument("-off", type=str, action="append", default=[], help="Switch id to turn off (sw1-sw3)")

    subparsers.add_parser("version", help='Print version information')

    for sub in (get_args, set_args, switch_args):
        sub.add_argument("-username", type=str, default=os.getenv("FRANKLINWH_USERNAME", ""),
                         help="FranklinWH account")
        sub.add_argument("-password", type=str, default=os.getenv("FRANKLINWH_PASSWORD", ""),
                         help="FranklinWH password")
        sub.add_argument("-gateway", type=str, default=os.getenv("FRANKLINWH_GATEWAY", ""),
                         help="aGate id")
        sub.add_argument("-url", type=str, default=os.getenv("FRANKLINWH_BASE_URL", BASE_URL),
                         help=f"Relay base URL [Default={BASE_URL}]")

    # Add a global debug flag
    p.add_argument("-debug", action="store_true", default=False, help="Enable debug output")
    return p


def run(args):
    if args.command == 'version':
        print("pyFranklinWH [%s]" % version)
        return 0

    gw = Gateway(args.username, args.password, args.gateway, base_url=args.url).connect()

    if args.command == 'get':
        stats = gw.get_stats()
        output = {
            'gateway': args.gateway,
            'mode': gw.get_mode(),
            'reserve': gw.get_reserve(),
        }
        output.update(stats.as_dict())
        if args.format == 'json':
            print(json.dumps(output, indent=2))
        elif args.format == 'csv':
            print(",".join(output.keys()))
            print(",".join(str(value) for value in output.values()))
        else:
            print(f"pyFranklinWH [{version}] - Gateway {args.gateway}\n")
            for item in output:
                name = item.replace("_", " ").title()
                print("  {:<20}{}".format(name, output[item]))
            print("")

    elif args.command == 'set':
        if not args.mode and args.reserve is None:
            print("usage: pyfranklinwh set [-h] [-mode MODE] [-reserve RESERVE]")
            return 1
        if args.mode:
            mode = args.mode.lower()
            print("Setting mode to %s" % mode)
            gw.set_mode(mode)
        if args.reserve is not None:
            print("Setting reserve to %s" % args.reserve)
            gw.set_reserve(args.reserve)

    elif args.command == 'switches':
        wanted = {sw: True for sw in args.on}
        wanted.update({sw: False for sw in args.off})
        if wanted:
            gw.set_smart_switches(wanted)
        for switch in gw.get_smart_switches():
            print("  {:<5}{:<20}{}".format(switch.id, switch.name or "", "on" if switch.state else "off"))
    return 0


def main(argv=None):
    dotenv.load_dotenv()
    p = build_parser()
    if argv is None and len(sys.argv) == 1:
        p.print_help(sys.stderr)
        return 1
    args = p.parse_args(argv)
    if args.debug:
        set_debug(True)
    try:
        return run(args)
    except PyFranklinWHException as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
