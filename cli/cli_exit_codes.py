EXIT_OK = 0
EXIT_STARTUP_ERROR = 1
EXIT_REQUEST_FAILED = 2
EXIT_CONNECTION_FAILED = 3
