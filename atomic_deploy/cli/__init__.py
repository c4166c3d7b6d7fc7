"""Command line interface for atomic-deploy"""
