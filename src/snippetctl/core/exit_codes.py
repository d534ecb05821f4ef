from __future__ import annotations

OK = 0
ERR_USAGE = 2
ERR_CONFIG = 10
ERR_PREREQ = 13
ERR_IO = 14
ERR_VALIDATION = 15
ERR_ARTIFACT = 17
ERR_INTERNAL = 99
