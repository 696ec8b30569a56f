import struct
from foxremote.errors import UsageError

# From toolkit/components/remote/nsXRemoteService.cpp, the command line
# property is an array of int32 followed by null terminated strings:
#
# [argc][offsetargv0][offsetargv1...]<workingdir>\0<argv[0]>\0argv[1]...\0
#
# Offsets are from the beginning of the buffer. The integers are little
# endian even though nothing says so. In practice the working directory is
# ignored, but it has to be there.

def _c_string(s):
    if isinstance(s, bytes):
        return s + b"\0"
    return s.encode("utf-8", "surrogateescape") + b"\0"


def encode(pwd, args):
    """Encode a command line for the commandline property."""
    strings = [_c_string(pwd)]
    offsets = list()
    # the header is argc plus one offset per argument, four bytes each
    off = (len(args) + 1) * 4 + len(strings[0])
    for a in args:
        s = _c_string(a)
        offsets.append(off)
        strings.append(s)
        off += len(s)
    header = struct.pack("<%dI" % (len(args) + 1), len(args), *offsets)
    return header + b"".join(strings)


def _c_string_at(data, off):
    end = data.find(b"\0", off)
    if end < 0:
        raise ValueError("unterminated string at offset %d" % off)
    return data[off:end].decode("utf-8", "surrogateescape")


def decode(data):
    """Split an encoded command line back into (pwd, args)."""
    if len(data) < 4:
        raise ValueError("command line too short: %d bytes" % len(data))
    (argc,) = struct.unpack_from("<I", data)
    header_len = (argc + 1) * 4
    if header_len > len(data):
        raise ValueError("header for %d arguments does not fit in %d bytes"
                         % (argc, len(data)))
    offsets = struct.unpack_from("<%dI" % argc, data, 4)
    pwd = _c_string_at(data, header_len)
    args = list()
    for off in offsets:
        if off < header_len or off >= len(data):
            raise ValueError("argument offset %d out of range" % off)
        args.append(_c_string_at(data, off))
    return (pwd, args)


def build_args(urls, new_window=False, new_tab=False, search=False):
    """Arguments for the remote Firefox, not counting the program name."""
    if search and (new_window or new_tab):
        raise UsageError("-search cannot be combined with -new-window or -new-tab")
    args = []
    if search:
        if not urls:
            raise UsageError("-search needs something to search for")
        args.extend(["-search", " ".join(urls)])
        return args
    if new_window:
        args.append("-new-window")
    if new_tab:
        args.append("-new-tab")
    args.extend(urls)
    return args
