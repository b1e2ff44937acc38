"""Runtime profiling over HTTP.

Profiles are process-wide. The endpoints are installed by the debug
multiplexer under ``<prefix>/pprof``; application profiles are exposed
one at a time with ``add_profile(name)``.
"""

from httpdebug.profiling.handlers import allocation_trace, make_endpoints, profile_endpoint
from httpdebug.profiling.profiles import Profile, lookup, new_profile, profiles

__all__ = [
    "Profile",
    "allocation_trace",
    "lookup",
    "make_endpoints",
    "new_profile",
    "profile_endpoint",
    "profiles",
]
