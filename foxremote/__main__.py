from foxremote import config
from foxremote.cmdline import build_args
from foxremote.errors import RemoteError, UsageError
from foxremote.knox import KnoX
from foxremote.session import Session, Criteria
import sys
import argparse
import logging
from Xlib import error as xerror

"""
Issue remote commands to a running Firefox through X window properties
(the _MOZILLA_COMMANDLINE protocol that replaced -remote).

    foxremote [-U user] [-P profile] [-G program] [-find] [-v]
              [-new-window|-new-tab|-search] [URL ...]
"""

log = logging.getLogger("foxremote")


class Director:
    def process_args(self, argv=None):
        parser = argparse.ArgumentParser(prog="foxremote")
        parser.add_argument("-U", metavar="USER", dest="user", default=None,
                            help="Firefox user to match against (default: any)")
        parser.add_argument("-P", metavar="PROFILE", dest="profile", default=None,
                            help="Firefox profile to match against (default: default)")
        parser.add_argument("-G", metavar="PROGRAM", dest="program", default=None,
                            help="Firefox program name to match against (default: firefox)")
        parser.add_argument("-force", action="store_true", default=None,
                            help="Go on even without the X window lock."
                            " Clears the lock as a side effect.")
        parser.add_argument("-find", action="store_true",
                            help="Find the Firefox window and exit")
        parser.add_argument("-list", action="store_true",
                            help="List every Firefox window that can be talked to")
        parser.add_argument("-v", action="store_true", dest="verbose",
                            help="extra verbosity")
        parser.add_argument("-new-window", action="store_true", dest="new_window",
                            help="Pass -new-window to Firefox")
        parser.add_argument("-new-tab", action="store_true", dest="new_tab",
                            help="Pass -new-tab to Firefox")
        parser.add_argument("-search", action="store_true",
                            help="Pass the arguments to Firefox as a search")
        parser.add_argument("-prefix", metavar="PREFIX", default=None,
                            help="X property name prefix, %s or %s"
                            % config.KNOWN_PREFIXES)
        parser.add_argument("-c", "--config", metavar="FILENAME",
                            help="Configuration file",
                            dest="config", default=None)
        parser.add_argument("-o", "--option", metavar="[SECTION:]OPTION=VALUE",
                            help="Option name and value to set in the remote"
                            " section of the configuration.",
                            action="append",
                            dest="options", default=[])
        parser.add_argument("urls", nargs="*", metavar="URL")
        self.options = parser.parse_args(argv)
        try:
            overrides = config.parse_options(self.options.options)
            for name in ("user", "profile", "program", "prefix"):
                value = getattr(self.options, name)
                if value is not None:
                    overrides[(config.Config.SECTION, name)] = value
            if self.options.force:
                overrides[(config.Config.SECTION, "force")] = "yes"
            self.cfg = config.Config(self.options.config, extra_options=overrides)
            self.args = build_args(self.options.urls,
                                   new_window=self.options.new_window,
                                   new_tab=self.options.new_tab,
                                   search=self.options.search)
            self.names = self.cfg.property_names
            self.force = self.cfg.force
        except UsageError as e:
            parser.error(str(e))

    def __init__(self, argv=None):
        self.process_args(argv)
        logging.basicConfig(
            format="foxremote: %(message)s", stream=sys.stderr,
            level=logging.DEBUG if self.options.verbose else logging.WARNING)

    def main(self):
        try:
            self.knox = KnoX()
        except (xerror.DisplayError, OSError) as e:
            log.error("X connection: %s", e)
            return 1
        self.session = Session(self.knox, self.names)
        criteria = Criteria(self.cfg.user, self.cfg.profile, self.cfg.program)
        try:
            if self.options.list:
                for c in self.session.finder(criteria).candidates():
                    print("0x%x user=%r profile=%r program=%r"
                          % (c.window.id, c.user, c.profile, c.program))
                return 0
            window = self.session.find(criteria)
            if self.options.find or self.options.verbose:
                print("firefox window: 0x%x" % window.id)
                if self.options.find:
                    return 0
            resp = self.session.submit(window, self.args, force=self.force)
        except RemoteError as e:
            log.error("%s", e)
            return 1
        if self.options.verbose:
            print("response: %s" % resp)
        return 0

sys.exit(Director().main())
