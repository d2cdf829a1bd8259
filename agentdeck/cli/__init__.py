"""Command line front end for agentdeck"""
