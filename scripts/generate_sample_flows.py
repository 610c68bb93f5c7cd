import json
import random
import sys
import time


def main():
    """
    Print goflow2 style JSON lines, a mix of private, public and broken records.

    python scripts/generate_sample_flows.py | python -m flow_forwarder.cli.run_forwarder
    """
    sources = ["10.0.0.1", "172.16.4.2", "192.168.1.10", "8.8.8.8", "1.1.1.1"]
    out = sys.stdout

    for seq in range(200):
        now = time.time_ns()
        msg = {
            "type": "SFLOW_5",
            "time_received_ns": now,
            "sequence_num": seq,
            "sampling_rate": 512,
            "sampler_address": "10.0.0.254",
            "time_flow_start_ns": now - 1_000_000_000,
            "time_flow_end_ns": now,
            "bytes": random.choice([64, 576, 1200, 1500]),
            "packets": random.randint(1, 20),
            "src_addr": random.choice(sources),
            "dst_addr": "10.0.0.2",
            "etype": "IPv4",
            "proto": random.choice(["TCP", "UDP"]),
            "src_port": random.randint(1024, 65535),
            "dst_port": random.choice([53, 80, 443]),
            "in_if": 1,
            "out_if": 2,
        }
        if seq % 50 == 49:
            out.write("{not json\n")
        out.write(json.dumps(msg) + "\n")
        out.flush()
        time.sleep(0.02)


if __name__ == "__main__":
    main()
