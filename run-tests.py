from lanrelay.lib import log
log.add_console_handler()

import pytest


# note: "--capture=sys" is necessary to run in IDLE
pytest.main(["lanrelay/tests", "--capture=sys"])
input("[press ENTER to quit]")
