"""Configuration and model repository layout for the MLServer runtime."""