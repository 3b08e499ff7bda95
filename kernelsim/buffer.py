from collections import deque

from kernelsim.errors import InvalidRequestError

BUFFER_SIZE = 5 # slots in the shared producer/consumer buffer


# Represents the shared bounded buffer of the producer/consumer demo.
# A producer that finds it full, or a consumer that finds it empty, is parked
# and resumed by the next opposite operation, so nothing ever sleeps.
class BoundedBuffer:
    def __init__(self, capacity=BUFFER_SIZE):
        if capacity < 1:
            raise InvalidRequestError(f"Buffer capacity must be at least 1, got {capacity}")
        self.capacity = capacity
        self.items = deque()
        self.waiting_producers = deque() # items whose producers are parked
        self.waiting_consumers = 0

    # Purpose: Stores an item, hands it to a parked consumer, or parks the producer
    def produce(self, item):
        if self.waiting_consumers > 0:
            self.waiting_consumers -= 1
            print(f"Produced: {item} -> handed to waiting consumer")
            print(f"Consumed: {item} (remaining={len(self.items)})")
            return "consumed"
        if len(self.items) < self.capacity:
            self.items.append(item)
            print(f"Produced: {item} (in buffer={len(self.items)})")
            return "stored"
        self.waiting_producers.append(item)
        print(f"[BUF] Buffer full; producer of {item} waits "
              f"({len(self.waiting_producers)} waiting)")
        return "waiting"

    # Purpose: Removes the oldest item, or registers a waiting consumer when empty
    def consume(self):
        if not self.items:
            self.waiting_consumers += 1
            print(f"[BUF] Buffer empty; consumer waits ({self.waiting_consumers} waiting)")
            return None
        item = self.items.popleft()
        print(f"Consumed: {item} (remaining={len(self.items)})")
        if self.waiting_producers:
            resumed = self.waiting_producers.popleft()
            self.items.append(resumed)
            print(f"Produced: {resumed} (resumed, in buffer={len(self.items)})")
        return item

    def stat(self):
        print(f"Items currently in buffer: {len(self.items)}/{self.capacity} "
              f"| waiting producers: {len(self.waiting_producers)} "
              f"| waiting consumers: {self.waiting_consumers}")
        return {
            'items': list(self.items),
            'waiting_producers': len(self.waiting_producers),
            'waiting_consumers': self.waiting_consumers,
        }
