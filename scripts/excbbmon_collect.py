#!/usr/bin/env python3
# excbbmon_collect.py
# This script is run by scollector as an external collector: one pass over
# the CloudBerry state, metric records on stdout, diagnostics on stderr.
import os
import sys

from pycbbmon.monitor.collector_cli import main

if __name__ == '__main__':

    argv = sys.argv[1:]

    # Fall back to the config shipped in parm/ when none is given
    if "--config" not in argv:
        home = os.environ.get("HOMEcbbmon", os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
        default_cfg = os.path.join(home, "parm", "cbbmon_config.yaml")
        if os.path.exists(default_cfg):
            argv = ["--config", default_cfg] + argv

    sys.exit(main(argv))
