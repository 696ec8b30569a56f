import configparser
import os
from collections import namedtuple
from foxremote.errors import UsageError

# This is a *protocol* version, not a Firefox version. It must match
# exactly.
PROTOCOL_VERSION = "5.1"

# The official protocol uses _MOZILLA_; _MEZILLA_ is a private fork of it
# that some people run so a second browser can be driven separately.
DEFAULT_PREFIX = "_MOZILLA"
KNOWN_PREFIXES = ("_MOZILLA", "_MEZILLA")


class PropertyNames(namedtuple("PropertyNames",
                               "lock commandline response version user profile program")):
    """Names of the X properties used by the remote control protocol."""

    @classmethod
    def from_prefix(cls, prefix=DEFAULT_PREFIX):
        prefix = prefix.rstrip("_")
        if not prefix:
            raise UsageError("empty property prefix")
        return cls(*("%s_%s" % (prefix, f.upper()) for f in cls._fields))


def parse_options(option_strings):
    """Turn ``[SECTION:]OPTION=VALUE`` strings into a dict keyed by
    (section, option)."""
    options = dict()
    for opt_str in option_strings:
        parts = opt_str.split('=', maxsplit=1)
        if len(parts) != 2 or not parts[0]:
            raise UsageError("Bad option: %r" % opt_str)
        name = parts[0].split(':', maxsplit=1)
        if len(name) == 1:
            key = (Config.SECTION, name[0])
        else:
            key = (name[0], name[1])
        if key in options:
            raise UsageError("Repeated option name in: %r" % opt_str)
        options[key] = parts[1]
    return options


class Config:
    SECTION = "remote"
    DEFAULTS = {
        "prefix": DEFAULT_PREFIX,
        "user": "",
        "profile": "default",
        "program": "firefox",
        "force": "no",
    }

    def __init__(self, filename=None, extra_options=None):
        self.config = configparser.ConfigParser(
            interpolation=configparser.ExtendedInterpolation())
        self.config.add_section("env")
        for (name, value) in os.environ.items():
            # configparser would choke on '$' in some values
            self.config["env"][name] = value.replace("$", "$$")
        self.config.add_section(self.SECTION)
        self.config_file = filename
        if filename is not None:
            if not self.config.read(filename):
                raise UsageError("cannot read configuration file %r" % filename)
        if extra_options:
            self.add_extra_options(extra_options)
        self.add_extra_options(self.DEFAULTS, section=self.SECTION)

    def add_extra_options(self, options, section=None):
        """Options given later never override ones already present, except
        for the explicit (section, option) overrides which are applied
        unconditionally."""
        for (option_name, value) in options.items():
            if isinstance(option_name, tuple):
                (section_name, option_name) = option_name
                override = True
            else:
                section_name = section
                override = False
            if not self.config.has_section(section_name):
                self.config.add_section(section_name)
            if override or not self.config.has_option(section_name, option_name):
                self.config[section_name][option_name] = value

    def get(self, name):
        return self.config[self.SECTION][name]

    @property
    def user(self):
        return self.get("user")

    @property
    def profile(self):
        return self.get("profile")

    @property
    def program(self):
        return self.get("program")

    @property
    def force(self):
        try:
            return self.config.getboolean(self.SECTION, "force")
        except ValueError as e:
            raise UsageError("bad value for force: %s" % e)

    @property
    def property_names(self):
        return PropertyNames.from_prefix(self.get("prefix"))
