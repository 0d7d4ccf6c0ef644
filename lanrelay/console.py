import sys

TITLE = "LAN SERVER REPORTING CLIENT"


def _clear(out):
    if out.isatty():
        out.write("\033[2J\033[H")


def status_text(listings, service_message, network_issues=False):
    status = "NETWORK ISSUES" if network_issues else "CONNECTED"
    lines = [
        "",
        "_______ %s ______" % TITLE,
        "",
        "  [STATUS]: %s" % status,
        "",
        "___________ SERVICE ANNOUNCEMENT __________",
        "",
        "  " + service_message,
        "",
        "__________ REGISTERED LAN SERVERS _________",
        "",
    ]
    for listing in listings:
        lines.append("%s [%s / %s]" % (listing.name, listing.players, listing.max_players))
        lines.append("  Timeout: %s" % listing.silent_ticks)
        lines.append("")
    return "\n".join(lines) + "\n"


def print_status(listings, service_message, network_issues=False, out=None):
    if out is None:
        out = sys.stdout
    _clear(out)
    out.write(status_text(listings, service_message, network_issues))
    out.flush()
