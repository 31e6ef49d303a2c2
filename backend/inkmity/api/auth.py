from fastapi.security import OAuth2PasswordBearer

# Clerk issues the session token; the API only verifies it. auto_error=False
# lets public endpoints share the scheme and lets dependencies shape the 401.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)
