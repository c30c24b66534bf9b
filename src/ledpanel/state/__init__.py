"""State layer.

The mirror and the sensor tracker are the only components allowed to
mutate device state; every mutation is announced on the event bus.
"""
