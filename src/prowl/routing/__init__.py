"""Routing — compiles a build description into ordered platform rules.

Rules are plain frozen values; the compiler assembles them into a route
table partitioned by phase markers.
"""
