# Configuration, errors and the token cache
