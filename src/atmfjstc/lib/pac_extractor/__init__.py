"""
Decoding of PAC firmware containers (as used for Spreadtrum/Unisoc device updates) and extraction of the partitions
embedded in them.

A PAC container consists of a fixed-size header, a table of variable-length partition records, and the raw partition
payloads. This package reads the header and partition table and copies each payload to its own file; it does not
verify signatures, does not write PAC files and treats payloads as opaque data.

The main entry points are:

- `driver.extract_pac` for extracting everything in one call
- `container.PACFile` for inspecting a container and extracting selected partitions
- `cli.main` for the ``pacextractor`` command-line tool
"""


__version__ = '1.1.0'
