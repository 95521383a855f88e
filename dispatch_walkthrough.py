#!/usr/bin/env python3
"""
Example walkthrough for reading and writing data through the Dispatch api/1.0.

- Looks up a TEST site (so no production data gets touched) and pages through areas
- Picks a production enabled line, a machine on it and a dispatch type
- Clocks a user in/out (plus a backdated clock in), sets and increments the machine cycle count
- Opens and closes a dispatch, adds an already closed dispatch, records pitch details
- Reads the daily production summary for the line

Reads are GET calls with query params, writes are POST calls with form encoded bodies.
Every response is checked and the first failure ends the run with exit code 1.
Writes that already went through are NOT rolled back.

Usage:
    L2L_APIKEY=... python dispatch_walkthrough.py --server example.l2l.com --site 12 --user jdoe [--dbg]
"""
import argparse
import os
import time
from datetime import datetime, timedelta

from requests import exceptions as req_exceptions

from api_client import APIClient, SessionContext
from utils.api_formats import minutes_to_delta, random_number
from utils.logger import get_logger, log_step, set_debug
from utils.response_checker import ApiCallError, check_response

logger = get_logger("dispatch-walkthrough")

# ---------------- CONFIG ----------------
AREA_PAGE_SIZE = 2
DEFAULT_TIMEOUT = "30"
TEST_DISPATCH_DESCRIPTION = "l2lsdk test dispatch"


# ---------------- HELPERS ----------------
def paginate_last(fetch_page, limit):
    """
    Walk offset pages until a short page comes back and return the last record seen.

    fetch_page(offset) -> list, a missing payload counts as an empty page. An empty
    final page keeps the last record of the previous full page. This is looser than
    requiring every page to be non-empty, which fails with "Couldn't find an active
    area" whenever the record count is an exact multiple of the page size.
    """
    offset = 0
    last = None
    while True:
        page = fetch_page(offset) or []
        if page:
            last = page[-1]
        if len(page) < limit:
            return last
        offset += len(page)


def pick_last(client, endpoint, extra, label):
    resp = client.read(endpoint, extra)
    data = check_response(resp, expect_non_empty=True, entity_label=label)
    return data[-1]


# ---------------- WALKTHROUGH ----------------
def run_walkthrough(client, site, user, dbg=False):
    # The site must be an active test site; exactly one row is expected back.
    resp = client.read("sites/", {"test_site": True, "active": True, "site": site})
    site_data = check_response(resp, expect_non_empty=True, entity_label="site")[0]
    client = client.with_site(site)
    log_step(logger, f"Using site: {site_data.get('description')}", site_data, dbg)

    def fetch_areas(offset):
        resp = client.read("areas/", {"inactive": "F", "limit": AREA_PAGE_SIZE, "offset": offset})
        return check_response(resp, expect_non_empty=(offset == 0), entity_label="area")

    area = paginate_last(fetch_areas, AREA_PAGE_SIZE)
    log_step(logger, f"Using area: {area['code']}", area, dbg)

    line = pick_last(client, "lines/", {"area_id": area["id"], "inactive": "F", "enable_production": True}, "line")
    log_step(logger, f"Using line: {line['code']}", line, dbg)

    machine = pick_last(client, "machines/", {"line_id": line["id"], "inactive": "F"}, "machine")
    log_step(logger, f"Using machine: {machine['code']}", machine, dbg)

    dispatch_type = pick_last(client, "dispatchtypes/", {"inactive": "F"}, "dispatch type")
    log_step(logger, f"Using dispatch type: {dispatch_type['code']}", dispatch_type, dbg)

    # --- clock in / out ---
    resp = client.write(f"users/clock_in/{user}/", {"linecode": line["code"]})
    log_step(logger, "User clocked in", check_response(resp, extract_data=False), dbg)

    resp = client.write(f"users/clock_out/{user}/", {"linecode": line["code"]})
    log_step(logger, "User clocked out", check_response(resp, extract_data=False), dbg)

    # start/end must be in the site's timezone, not UTC
    now = datetime.now()
    resp = client.write(f"users/clock_in/{user}/", {
        "linecode": line["code"],
        "start": now - timedelta(days=7),
        "end": now + minutes_to_delta(480),
    })
    log_step(logger, "Created backdated clock in", check_response(resp, extract_data=False), dbg)

    # --- machine cycle counts ---
    resp = client.write("machines/set_cycle_count/", {"code": machine["code"], "cyclecount": 832})
    log_step(logger, "Set machine cycle count", check_response(resp, extract_data=False), dbg)

    # high frequency machines skip the lastupdated tracking
    resp = client.write("machines/increment_cycle_count/",
                        {"code": machine["code"], "cyclecount": 5, "skip_lastupdate": 1})
    log_step(logger, "Incremented machine cycle count", check_response(resp, extract_data=False), dbg)

    # --- dispatches ---
    resp = client.write("dispatches/open/", {
        "dispatchtype": dispatch_type["id"],
        "description": TEST_DISPATCH_DESCRIPTION,
        "machine": machine["id"],
    })
    dispatch = check_response(resp)
    log_step(logger, "Created open Dispatch", dispatch, dbg)

    resp = client.write(f"dispatches/close/{dispatch['id']}")
    log_step(logger, "Closed open Dispatch", check_response(resp), dbg)

    now = datetime.now()
    resp = client.write("dispatches/add/", {
        "dispatchtypecode": dispatch_type["code"],
        "description": f"{TEST_DISPATCH_DESCRIPTION} (already closed)",
        "machinecode": machine["code"],
        "reported": now - timedelta(days=60),
        "completed": now + minutes_to_delta(34),
    })
    log_step(logger, "Created backdated Dispatch", check_response(resp), dbg)

    # --- production ---
    # start/end "now" makes a 1 second pitch; real integrations should send the real range
    resp = client.write("pitchdetails/record_details/", {
        "linecode": line["code"],
        "productcode": f"testproduct-{int(time.time() * 1000)}",
        "actual": random_number(10, 100),
        "scrap": random_number(5, 20),
        "operator_count": random_number(0, 10),
        "start": "now",
        "end": "now",
    })
    log_step(logger, "Recorded Pitch details", check_response(resp), dbg)

    now = datetime.now()
    resp = client.read("reporting/production/daily_summary_data_by_line/", {
        "start": now.replace(hour=0, minute=0, second=0, microsecond=0),
        "end": now + timedelta(days=1),
        "linecode": line["code"],
        "show_products": True,
    })
    summary = check_response(resp)
    log_step(logger, "Retrieved Daily summary for line", summary, dbg)
    return summary


# ---------------- CLI ----------------
def env_default(name, fallback=None):
    # raw string, argparse applies type= to string defaults
    return os.environ.get(name) or fallback


def build_parser():
    parser = argparse.ArgumentParser(description="Walk through reads and writes against the Dispatch api")
    parser.add_argument("--server", default=env_default("L2L_SERVER"),
                        help="Hostname to use as the server (env L2L_SERVER)")
    parser.add_argument("--site", type=int, default=env_default("L2L_SITE"),
                        help="Site id to operate against, must be a test site (env L2L_SITE)")
    parser.add_argument("--user", default=env_default("L2L_USER"),
                        help="Username for the user to clock in/out (env L2L_USER)")
    # Keep the api key out of source control and shell history; prefer the env var.
    parser.add_argument("--apikey", default=env_default("L2L_APIKEY"),
                        help="API key used for authentication (env L2L_APIKEY)")
    parser.add_argument("--timeout", type=float, default=env_default("L2L_TIMEOUT", DEFAULT_TIMEOUT),
                        help="Per request timeout in seconds (env L2L_TIMEOUT)")
    parser.add_argument("--dbg", action="store_true", help="Print out verbose api output for debugging")
    return parser


def parse_args(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    missing = [f"--{name}" for name in ("server", "site", "user", "apikey") if getattr(args, name) is None]
    if missing:
        parser.error(f"missing required options: {', '.join(missing)}")
    return args


def main(argv=None):
    args = parse_args(argv)
    set_debug(args.dbg, "dispatch-walkthrough", "dispatch-api")

    client = APIClient(args.server, SessionContext(args.apikey), timeout=args.timeout)
    try:
        run_walkthrough(client, args.site, args.user, dbg=args.dbg)
    except ApiCallError as e:
        logger.error("%s failure: %s", e.kind, e.message)
        return 1
    except req_exceptions.RequestException as e:
        logger.error("transport failure: %s", e)
        return 1

    logger.info("Walkthrough finished")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
