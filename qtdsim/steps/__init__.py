#!filepath: qtdsim/steps/__init__.py
