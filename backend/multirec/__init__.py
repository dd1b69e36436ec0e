"""Multi-model recommendation engine"""
