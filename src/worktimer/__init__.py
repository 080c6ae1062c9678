"""WorkTimer package.

Organized by feature modules (records, policy, sync, reporting, timer) with a
thin Flask controller layer over service/repository layers.
"""
