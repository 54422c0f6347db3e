import math
import os
import random
import time

from avlmap import AVLTreeMap

SMOKE_SIZE = int(os.environ.get("AVLMAP_SMOKE_SIZE", "10000"))


def run_smoke_test(size: int = SMOKE_SIZE) -> AVLTreeMap:
    print(f"--- AVL map smoke test ({size:,} keys) ---")
    m = AVLTreeMap()
    keys = list(range(size))
    random.shuffle(keys)

    start_time = time.time()
    for k in keys:
        m.insert(k, f"v{k}")
    end_time = time.time()
    print(f"[smoke] Inserted {len(m):,} keys in {end_time - start_time:.2f}s, height {m.height}")

    bound = 1.44 * math.log2(size + 2)
    print(f"[smoke] Height bound 1.44*log2(n+2) = {bound:.1f}")

    start_time = time.time()
    for k in keys[: size // 2]:
        m.erase(k)
    end_time = time.time()
    print(f"[smoke] Erased {size // 2:,} keys in {end_time - start_time:.2f}s, {len(m):,} left")

    if keys:
        print(f"Sample GET {keys[-1]}: {m.find(keys[-1])}")
    if size > 1:
        print(f"Sample GET {keys[0]} (erased): {m.find(keys[0])}")

    m.check_invariants()
    print(f"[smoke] Balanced: {m.is_my_tree_balanced()}")
    return m


if __name__ == "__main__":
    run_smoke_test()
