import time

from orrery import constants as C
from orrery.integrators import INTEGRATORS, OrbitState
from orrery.presets import PRESETS


if __name__ == "__main__":
    cfg = PRESETS["Inner Planets"][2]
    state0 = OrbitState(cfg["state"][:3], cfg["state"][3:])
    steps = 20000
    dt = 3600.0

    for name, step in INTEGRATORS.items():
        state = state0
        t0 = time.time()
        for _ in range(steps):
            state = step(state, dt, C.MU_SUN)
        elapsed = time.time() - t0
        print(f"{name:12s}: {steps / elapsed:10.0f} steps/s")
