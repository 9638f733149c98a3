from bamscript.globals import SAM_FLAGS
from bamscript.values import NativeFunction, to_uint32


def has_flag(flag, mask):
    """ True if any bit of *mask* is set in *flag*; both are taken as unsigned 32-bit integers. """
    return (to_uint32(flag) & to_uint32(mask)) != 0


HELPERS = {
    "hasFlag": NativeFunction("hasFlag", has_flag, 2),
}


def install_helpers(context):
    """ Register the native helpers and SAM flag constants as read-only globals of *context*. """
    for name, function in HELPERS.items():
        context.set_global(name, function, constant=True)
    for name, bit in SAM_FLAGS.items():
        context.set_global(name, bit, constant=True)
