# Carrier API client and rating helpers
