"""Configuration, config-file format and HTTP client for the OpenVINO Model Server."""