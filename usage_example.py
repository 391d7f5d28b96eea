#!/usr/bin/env python3

import sys

from syftlite import Syft, SyftError


def main():
    peer_url = sys.argv[1] if len(sys.argv) > 1 else "ws://localhost:8080/ws"

    print("=== Syft Usage Example ===\n")

    syft = Syft(url=peer_url, verbose=True)
    syft.on_tensor_added(lambda event: print(f"   added {event['id']} ({len(event['tensors'])} total)"))
    syft.on_run_operation(lambda event: print(f"   {event['func']} -> {event['result'].tolist()}"))
    syft.on_message_sent(lambda message: print(f"   sent {message['type']}"))

    print("1. Waiting for the peer...")
    if not syft.socket.wait_until_connected(timeout=5):
        print(f"   Could not reach {peer_url}; continuing locally (start one with `syftlite-peer`)")

    try:
        print("\n2. Adding tensors...")
        syft.add_tensor("first-tensor", [[1, 2], [3, 4]])
        syft.add_tensor("second-tensor", [[5, 6], [7, 8]])
        print(f"   second-tensor is at index {syft.get_tensor_index('second-tensor')}")

        print("\n3. Running operations...")
        syft.run_operation("add", ["first-tensor", "second-tensor"])
        syft.run_operation("matmul", ["first-tensor", "second-tensor"])

        print("\n4. Cleanup...")
        for tensor in syft.get_tensors():
            syft.remove_tensor(tensor.id)
        print(f"   {len(syft.get_tensors())} tensors left")

    except SyftError as e:
        print(f"Error: {e}")

    finally:
        syft.stop()

    print("\n=== Example completed ===")


if __name__ == "__main__":
    main()
