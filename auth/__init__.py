"""auth/ -- Identity assertion package for the staff directory.

Layer rule: auth/ imports only core/, stdlib and third-party libraries.
It does NOT import from api/ or directory/ at runtime.
api/ and directory/ import from auth/, not the other way around.
"""
