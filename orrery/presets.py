"""Initial conditions for the bundled planetary systems.

State vectors are heliocentric, ecliptic-aligned, in metres and metres per
second. ``rot`` is the sidereal rotation period in days; a negative value
means retrograde spin. ``size`` is the visual radius in render units.
"""

SUN = {
    "name": "Sun",
    "color": (255, 204, 0),
    "size": 5.0,
}

PRESETS = {
    "Inner Planets": [
        {
            "id": "mercury",
            "name": "Mercury",
            "color": (140, 120, 83),
            "size": 0.8,
            "state": [4.91225e10, -3.95155e10, -7.02633e9, 3.48316e4, 4.09539e4, 2.76008e3],
            "rot": 58.6,
            "info": "The planet closest to the Sun; its surface temperature swings to extremes.",
        },
        {
            "id": "venus",
            "name": "Venus",
            "color": (255, 198, 73),
            "size": 1.2,
            "state": [-3.49841e10, -9.62386e10, -2.57004e9, 3.27914e4, -1.18944e4, -1.97059e3],
            "rot": -243.0,
            "info": "The hottest planet in the Solar System, wrapped in a thick atmosphere.",
        },
        {
            "id": "earth",
            "name": "Earth",
            "color": (74, 144, 226),
            "size": 1.3,
            "state": [-1.13988e11, -9.00639e10, 1.83944e6, 2.14668e4, -2.69850e4, -3.99201e-1],
            "rot": 1.0,
            "info": "Our blue planet, and the only world known to harbour life.",
        },
        {
            "id": "mars",
            "name": "Mars",
            "color": (226, 123, 88),
            "size": 0.9,
            "state": [-3.05355e11, 8.44825e10, -6.64901e9, -5.98991e3, -2.00030e4, -4.51061e2],
            "rot": 1.026,
            "info": "The red planet, a leading candidate for future human settlement.",
        },
    ],
}

# NAIF ids of the barycentres used when loading the same bodies from an SPK kernel.
NAIF_IDS = {
    "mercury": 1,
    "venus": 2,
    "earth": 3,
    "mars": 4,
}
NAIF_SUN = 10
