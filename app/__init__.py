"""Notification service application package.

Kept as a regular package so ``app`` never resolves to an unrelated namespace
package installed in the environment.
"""
