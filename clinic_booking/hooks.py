app_name = "clinic_booking"
app_title = "Clinic Booking"
app_publisher = "Clinic Booking contributors"
app_description = "Disponibilidad de doctores y reserva de citas medicas"
app_email = "dev@clinic-booking.example"
app_license = "mit"

# Apps
# ------------------

# required_apps = []

# Installation
# ------------

# after_install = "clinic_booking.install.after_install"

# Document Events
# ---------------
# Appointment integrity (overlap check) lives in the DocType controller,
# see clinic_booking/clinic_booking/doctype/appointment/appointment.py

# doc_events = {
# 	"Appointment": {
# 		"on_update": "method",
# 	}
# }

# Testing
# -------

# before_tests = "clinic_booking.install.before_tests"

# Site configuration
# ------------------
# clinic_booking_timezone: IANA timezone used for rules without timezone
# and for Availability Exceptions (default: System Settings, then Europe/Paris)

# Automatically update python controller files with type annotations for this app.
# export_python_type_annotations = True
