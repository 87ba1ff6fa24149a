PROJECT_NAME = "Automation Engine"
API_V1_STR = "/api/v1"
