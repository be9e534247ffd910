"""auth/ -- Credential validation, account storage and token issuance for authgate.

Layer rule: auth/ imports only stdlib + third-party libraries (plus core/
for type hints). It does NOT import from api/.
api/ imports from auth/, not the other way around.
"""
