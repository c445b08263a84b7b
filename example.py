# Example: pyFranklinWH Usage Demo
# --------------------------------
# This script demonstrates how to connect to a FranklinWH aGate using the pyFranklinWH library.
#
# Usage:
#   - Enter your credentials below, or use a .env file with the following variables:
#       FRANKLINWH_USERNAME, FRANKLINWH_PASSWORD, FRANKLINWH_GATEWAY
#   - Run: python example.py

import os

import dotenv

import pyfranklinwh

# Load environment variables from .env file if present
dotenv.load_dotenv()

# Enable debug logging for more verbose output (optional for learning)
# pyfranklinwh.set_debug(True)

username = os.getenv('FRANKLINWH_USERNAME', 'email@example.com')
password = os.getenv('FRANKLINWH_PASSWORD', 'password')
gateway = os.getenv('FRANKLINWH_GATEWAY', '10060006AXXXXXXXXX')

print("Connecting to FranklinWH relay...")
gw = pyfranklinwh.connect(username, password, gateway)

# --- Live Power Data ---
stats = gw.get_stats()
print("Battery level: %0.0f%%" % stats.charge_percentage)
print("Solar Power: %0.2fkW" % stats.solar_in)
print("Grid Power: %0.2fkW" % stats.grid_out)
print("Battery Power: %0.2fkW" % stats.battery_out)
print("Home Power: %0.2fkW" % stats.load_out)
print("")

# --- Operating Mode and Reserve ---
print("Mode: %s" % gw.get_mode())
print("Reserve: %d%%" % gw.get_reserve())
print("")

# --- Smart Switches ---
for switch in gw.get_smart_switches():
    print("Switch %s (%s): %s" % (switch.id, switch.name, "on" if switch.state else "off"))
print("")

# --- Accessories ---
print("Accessories: %r" % gw.get_accessories())
