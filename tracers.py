"""
╔══════════════════════════════════════════════════════════════════╗
║                  Tracers: algorithm → step list                  ║
║                                                                  ║
║  Every tracer runs a textbook algorithm to completion on a       ║
║  private working copy and returns a brand-new list of            ║
║  TraceStep snapshots.  Nothing is shared between calls, so the   ║
║  same input always yields the same trace.                        ║
║                                                                  ║
║  Families                                                        ║
║  ────────                                                        ║
║    sorting   : bubble, insertion, selection, quick, merge        ║
║    searching : linear, binary                                    ║
║    trees     : inorder, preorder, postorder, bfs, dfs            ║
║    graphs    : bfs, dfs, dijkstra                                ║
║                                                                  ║
║  Every trace ends with exactly one terminal step whose aux       ║
║  side channel is cleared.  An empty structure yields a trace     ║
║  holding only that terminal step.                                ║
╚══════════════════════════════════════════════════════════════════╝
"""

import logging
from collections import deque

from structures import InvalidInputError
from trace_model import (
    Auxiliary, TraceStep, make_snapshot, INFINITY,
    VISITING, VISITED, START, END,
)

logger = logging.getLogger(__name__)


# ═════════════════════════════════════════════════════════════════
#  ALGORITHM CATALOGUE
#
#  Display metadata and the pseudocode each step's ``highlight``
#  indexes into.
# ═════════════════════════════════════════════════════════════════
ALGORITHMS = {
    "sorting": {
        "bubble": {
            "name": "Bubble Sort",
            "time": "O(n²)", "space": "O(1)",
            "description": "Repeatedly steps through the list, compares adjacent "
                           "elements and swaps them if they're in the wrong order.",
            "code": [
                "for (i = 0; i < n-1; i++) {",
                "  for (j = 0; j < n-i-1; j++) {",
                "    if (arr[j] > arr[j+1]) {",
                "      swap(arr[j], arr[j+1]);",
                "    }",
                "  }",
                "}",
            ],
        },
        "insertion": {
            "name": "Insertion Sort",
            "time": "O(n²)", "space": "O(1)",
            "description": "Builds the sorted array one element at a time by "
                           "inserting each element into its correct position.",
            "code": [
                "for (i = 1; i < n; i++) {",
                "  key = arr[i];",
                "  j = i - 1;",
                "  while (j >= 0 && arr[j] > key) {",
                "    arr[j + 1] = arr[j];",
                "    j = j - 1;",
                "  }",
                "  arr[j + 1] = key;",
                "}",
            ],
        },
        "selection": {
            "name": "Selection Sort",
            "time": "O(n²)", "space": "O(1)",
            "description": "Finds the minimum element and places it at the beginning, "
                           "then repeats for the remaining unsorted portion.",
            "code": [
                "for (i = 0; i < n-1; i++) {",
                "  min_idx = i;",
                "  for (j = i+1; j < n; j++) {",
                "    if (arr[j] < arr[min_idx])",
                "      min_idx = j;",
                "  }",
                "  swap(arr[min_idx], arr[i]);",
                "}",
            ],
        },
        "quick": {
            "name": "Quick Sort",
            "time": "O(n log n)", "space": "O(log n)",
            "description": "Divides the array into smaller sub-arrays based on a pivot "
                           "element, then recursively sorts the sub-arrays.",
            "code": [
                "function quickSort(arr, low, high) {",
                "  if (low < high) {",
                "    pi = partition(arr, low, high);",
                "    quickSort(arr, low, pi - 1);",
                "    quickSort(arr, pi + 1, high);",
                "  }",
                "}",
                "function partition(arr, low, high) {",
                "  pivot = arr[high]; i = low - 1;",
                "  for (j = low; j < high; j++) {",
                "    if (arr[j] < pivot) {",
                "      i++; swap(arr[i], arr[j]);",
                "    }",
                "  }",
                "  swap(arr[i + 1], arr[high]);",
                "  return i + 1;",
                "}",
            ],
        },
        "merge": {
            "name": "Merge Sort",
            "time": "O(n log n)", "space": "O(n)",
            "description": "Divides the array into halves, recursively sorts them, "
                           "then merges the sorted halves back together.",
            "code": [
                "function mergeSort(arr) {",
                "  if (arr.length <= 1) return arr;",
                "  const mid = Math.floor(arr.length / 2);",
                "  const left = mergeSort(arr.slice(0, mid));",
                "  const right = mergeSort(arr.slice(mid));",
                "  return merge(left, right);",
                "}",
                "function merge(left, right) {",
                "  while (left.length && right.length)",
                "    out.push(left[0] <= right[0] ? left.shift() : right.shift());",
                "  return out.concat(left, right);",
                "}",
            ],
        },
    },
    "searching": {
        "linear": {
            "name": "Linear Search",
            "time": "O(n)", "space": "O(1)",
            "description": "Searches through each element sequentially until the "
                           "target is found or the end is reached.",
            "code": ["for (i = 0; i < n; i++) {", "  if (arr[i] == target) {",
                     "    return i;", "  }", "}", "return -1;"],
        },
        "binary": {
            "name": "Binary Search",
            "time": "O(log n)", "space": "O(1)",
            "description": "Efficiently searches a sorted array by repeatedly dividing "
                           "the search interval in half.",
            "code": [
                "left = 0, right = n - 1, result = -1;",
                "while (left <= right) {",
                "  mid = left + (right - left) / 2;",
                "  if (arr[mid] == target) { result = mid; right = mid - 1; }",
                "  else if (arr[mid] < target) left = mid + 1;",
                "  else right = mid - 1;",
                "}",
                "return result;",
            ],
        },
    },
    "trees": {
        "inorder": {
            "name": "In-order Traversal",
            "description": "Visit left subtree, root, then right subtree (Left → Root → Right)",
            "code": [
                "function inorderTraversal(node) {",
                "  if (node !== null) {",
                "    inorderTraversal(node.left);",
                "    visit(node);",
                "    inorderTraversal(node.right);",
                "  }",
                "}",
            ],
        },
        "preorder": {
            "name": "Pre-order Traversal",
            "description": "Visit root, left subtree, then right subtree (Root → Left → Right)",
            "code": [
                "function preorderTraversal(node) {",
                "  if (node !== null) {",
                "    visit(node);",
                "    preorderTraversal(node.left);",
                "    preorderTraversal(node.right);",
                "  }",
                "}",
            ],
        },
        "postorder": {
            "name": "Post-order Traversal",
            "description": "Visit left subtree, right subtree, then root (Left → Right → Root)",
            "code": [
                "function postorderTraversal(node) {",
                "  if (node !== null) {",
                "    postorderTraversal(node.left);",
                "    postorderTraversal(node.right);",
                "    visit(node);",
                "  }",
                "}",
            ],
        },
        "bfs": {
            "name": "Breadth-First Search",
            "description": "Visit nodes level by level using a queue",
            "code": [
                "function bfsTraversal(root) {",
                "  const queue = [root];",
                "  while (queue.length > 0) {",
                "    const node = queue.shift();",
                "    visit(node);",
                "    if (node.left) queue.push(node.left);",
                "    if (node.right) queue.push(node.right);",
                "  }",
                "}",
            ],
        },
        "dfs": {
            "name": "Depth-First Search",
            "description": "Visit nodes using a stack (similar to pre-order)",
            "code": [
                "function dfsTraversal(root) {",
                "  const stack = [root];",
                "  while (stack.length > 0) {",
                "    const node = stack.pop();",
                "    visit(node);",
                "    if (node.right) stack.push(node.right);",
                "    if (node.left) stack.push(node.left);",
                "  }",
                "}",
            ],
        },
    },
    "graphs": {
        "bfs": {
            "name": "Breadth-First Search",
            "description": "Explores nodes level by level using a queue data structure",
            "code": [
                "function bfs(graph, start) {",
                "  const queue = [start];",
                "  const visited = new Set();",
                "  while (queue.length > 0) {",
                "    const node = queue.shift();",
                "    if (!visited.has(node)) {",
                "      visited.add(node);",
                "      for (neighbor of graph[node]) {",
                "        if (!visited.has(neighbor)) {",
                "          queue.push(neighbor);",
                "        }",
                "      }",
                "    }",
                "  }",
                "}",
            ],
        },
        "dfs": {
            "name": "Depth-First Search",
            "description": "Explores as far as possible along each branch using a stack",
            "code": [
                "function dfs(graph, start) {",
                "  const stack = [start];",
                "  const visited = new Set();",
                "  while (stack.length > 0) {",
                "    const node = stack.pop();",
                "    if (!visited.has(node)) {",
                "      visited.add(node);",
                "      for (neighbor of graph[node]) {",
                "        if (!visited.has(neighbor)) {",
                "          stack.push(neighbor);",
                "        }",
                "      }",
                "    }",
                "  }",
                "}",
            ],
        },
        "dijkstra": {
            "name": "Dijkstra's Algorithm",
            "description": "Finds shortest path between nodes using weighted edges",
            "code": [
                "function dijkstra(graph, start) {",
                "  const distances = {};",
                "  const visited = new Set();",
                "  const pq = new PriorityQueue();",
                "  distances[start] = 0;",
                "  pq.enqueue(start, 0);",
                "  while (!pq.isEmpty()) {",
                "    const current = pq.dequeue();",
                "    if (visited.has(current)) continue;",
                "    visited.add(current);",
                "    for (neighbor of graph[current]) {",
                "      const newDist = distances[current] + weight;",
                "      if (newDist < distances[neighbor]) {",
                "        distances[neighbor] = newDist;",
                "        pq.enqueue(neighbor, newDist);",
                "      }",
                "    }",
                "  }",
                "}",
            ],
        },
    },
}


# ═════════════════════════════════════════════════════════════════
#  RECORDER
#
#  Local step buffer owned by a single tracer call.  It is created
#  inside the tracer and its list is returned, never shared.
# ═════════════════════════════════════════════════════════════════
class _Recorder:

    def __init__(self):
        self.steps = []

    def record(self, action, desc, snapshot, highlight=None, aux=None,
               visited=(), current=None, **extra):
        """Append one step (same shape as every other step in the trace)."""
        self.steps.append(TraceStep(
            action=action,
            description=desc,
            snapshot=snapshot,
            highlight=highlight,
            aux=aux,
            visited=tuple(visited),
            current=current,
            extra=extra,
        ))


# ═════════════════════════════════════════════════════════════════
#  SORTING
#
#  The working array is a list of Elements (key = original slot id).
#  ``_frame`` re-tags it for one step.  Swap steps show the array
#  *before* the exchange with the two positions tagged ``swapping``;
#  the following step shows them exchanged.
# ═════════════════════════════════════════════════════════════════
def _frame(work, **roles):
    """
    Snapshot ``work`` with role sets.

    Args:
        work  (list[Element]): Working array.
        roles: role name → container of indices (or a predicate).
    """
    def roles_for(idx, _key):
        out = []
        for role, where in roles.items():
            if callable(where):
                if where(idx):
                    out.append(role)
            elif idx in where:
                out.append(role)
        return out
    return make_snapshot(((e.key, e.value) for e in work), roles_for)


def _sorted_done(rec, work):
    rec.record("done", "Array is completely sorted! 🎉",
               _frame(work, sorted=lambda i: True), highlight=0)


def _empty_array(rec):
    rec.record("done", "Array is empty, nothing to sort.", (), highlight=0)
    return rec.steps


def bubble_sort(array):
    rec  = _Recorder()
    work = list(array)
    n    = len(work)
    if n == 0:
        return _empty_array(rec)

    for i in range(n - 1):
        settled = n - i                      # indices >= settled are final
        for j in range(n - i - 1):
            rec.record("compare",
                       f"Comparing elements {work[j].value} and {work[j + 1].value}",
                       _frame(work, comparing={j, j + 1},
                              sorted=lambda k, s=settled: k >= s),
                       highlight=2, indices=(j, j + 1))

            if work[j].value > work[j + 1].value:
                rec.record("swap",
                           f"Swapping {work[j].value} and {work[j + 1].value}",
                           _frame(work, swapping={j, j + 1},
                                  sorted=lambda k, s=settled: k >= s),
                           highlight=3, indices=(j, j + 1))
                work[j], work[j + 1] = work[j + 1], work[j]

        last = n - i - 1
        rec.record("place",
                   f"Element {work[last].value} is in correct position",
                   _frame(work, sorted=lambda k, s=last: k >= s),
                   highlight=1, indices=(last,))

    _sorted_done(rec, work)
    return rec.steps


def insertion_sort(array):
    rec  = _Recorder()
    work = list(array)
    n    = len(work)
    if n == 0:
        return _empty_array(rec)

    for i in range(1, n):
        key = work[i]
        pos = i                               # where the key currently sits

        rec.record("select", f"Selecting element {key.value} to insert",
                   _frame(work, selected={pos}, sorted=lambda k: k < i),
                   highlight=1, indices=(pos,))

        # Shifting arr[j] right one slot is recorded as exchanging it
        # with the key, so every snapshot stays a permutation.
        while pos > 0:
            j = pos - 1
            in_sorted = lambda k, p=pos: k <= i and k != p
            rec.record("compare", f"Comparing {work[j].value} with {key.value}",
                       _frame(work, comparing={j}, selected={pos}, sorted=in_sorted),
                       highlight=3, indices=(j, pos))
            if work[j].value <= key.value:
                break
            rec.record("swap", f"Shifting {work[j].value} one position right",
                       _frame(work, swapping={j, pos}, sorted=in_sorted),
                       highlight=4, indices=(j, pos))
            work[j], work[pos] = work[pos], work[j]
            pos = j

        rec.record("place", f"Inserted {key.value} at position {pos}",
                   _frame(work, sorted=lambda k: k <= i),
                   highlight=7, indices=(pos,))

    _sorted_done(rec, work)
    return rec.steps


def selection_sort(array):
    rec  = _Recorder()
    work = list(array)
    n    = len(work)
    if n == 0:
        return _empty_array(rec)

    for i in range(n - 1):
        min_idx = i
        before  = lambda k: k < i

        rec.record("select", f"Finding minimum element from position {i}",
                   _frame(work, selected={i}, sorted=before),
                   highlight=1, indices=(i,))

        for j in range(i + 1, n):
            rec.record("compare",
                       f"Comparing {work[j].value} with current minimum "
                       f"{work[min_idx].value}",
                       _frame(work, comparing={j, min_idx}, selected={i}, sorted=before),
                       highlight=3, indices=(j, min_idx))
            if work[j].value < work[min_idx].value:
                min_idx = j
                rec.record("select", f"New minimum {work[min_idx].value} at index {j}",
                           _frame(work, selected={i, min_idx}, sorted=before),
                           highlight=4, indices=(min_idx,))

        if min_idx != i:
            rec.record("swap",
                       f"Swapping {work[i].value} with minimum {work[min_idx].value}",
                       _frame(work, swapping={i, min_idx}, sorted=before),
                       highlight=6, indices=(i, min_idx))
            work[i], work[min_idx] = work[min_idx], work[i]

        rec.record("place", f"Element {work[i].value} is in correct position",
                   _frame(work, sorted=lambda k: k <= i),
                   highlight=0, indices=(i,))

    _sorted_done(rec, work)
    return rec.steps


def quick_sort(array):
    """Quick sort with Lomuto partitioning (last element as pivot)."""
    rec   = _Recorder()
    work  = list(array)
    final = set()                             # indices already in place
    if not work:
        return _empty_array(rec)

    def partition(low, high):
        pivot = work[high].value
        rec.record("pivot", f"Choosing pivot element: {pivot}",
                   _frame(work, pivot={high}, sorted=final, selected=range(low, high)),
                   highlight=8, indices=(high,), low=low, high=high)

        i = low - 1
        for j in range(low, high):
            rec.record("compare", f"Comparing {work[j].value} with pivot {pivot}",
                       _frame(work, comparing={j, high}, pivot={high}, sorted=final),
                       highlight=10, indices=(j, high))
            if work[j].value < pivot:
                i += 1
                if i != j:
                    rec.record("swap", f"Swapping {work[i].value} and {work[j].value}",
                               _frame(work, swapping={i, j}, pivot={high}, sorted=final),
                               highlight=11, indices=(i, j))
                    work[i], work[j] = work[j], work[i]

        p = i + 1
        if p != high:
            rec.record("swap", f"Placing pivot {pivot} in correct position",
                       _frame(work, swapping={p, high}, pivot={high}, sorted=final),
                       highlight=14, indices=(p, high))
            work[p], work[high] = work[high], work[p]
        final.add(p)
        rec.record("place", f"Pivot {pivot} is in its final position at index {p}",
                   _frame(work, pivot={p}, sorted=final),
                   highlight=15, indices=(p,))
        return p

    def sort(low, high):
        if low < high:
            p = partition(low, high)
            sort(low, p - 1)
            sort(p + 1, high)
        elif low == high:
            final.add(low)

    sort(0, len(work) - 1)
    _sorted_done(rec, work)
    return rec.steps


def merge_sort(array):
    """
    Top-down merge sort.

    While two halves are merged, the region ``[left, right]`` is shown
    as ``merged-so-far + rest-of-left + rest-of-right``.  Taking the
    head of the right half therefore rotates it in front of the
    remaining left elements: the region is always a permutation of
    its original contents.
    """
    rec  = _Recorder()
    work = list(array)
    if not work:
        return _empty_array(rec)

    def merge(left, mid, right):
        lhs, rhs = work[left:mid + 1], work[mid + 1:right + 1]
        merged   = []
        i = j = 0
        region   = range(left, right + 1)

        while i < len(lhs) and j < len(rhs):
            a = left + len(merged)            # head of the left half
            b = a + (len(lhs) - i)            # head of the right half
            rec.record("compare",
                       f"Merging: comparing {lhs[i].value} and {rhs[j].value}",
                       _frame(work, comparing={a, b}, selected=region),
                       highlight=8, indices=(a, b))
            if lhs[i].value <= rhs[j].value:
                taken, side = lhs[i], "left"
                i += 1
            else:
                taken, side = rhs[j], "right"
                j += 1
            merged.append(taken)
            work[left:right + 1] = merged + lhs[i:] + rhs[j:]
            rec.record("move", f"Taking {taken.value} from the {side} half",
                       _frame(work, selected=region),
                       highlight=9, indices=(left + len(merged) - 1,))

        work[left:right + 1] = merged + lhs[i:] + rhs[j:]
        rec.record("merge", f"Merged subarray from {left} to {right}",
                   _frame(work, selected=region),
                   highlight=10, low=left, high=right)

    def sort(left, right):
        if left < right:
            mid = (left + right) // 2
            rec.record("divide", f"Dividing array from {left} to {right}",
                       _frame(work, selected=range(left, right + 1)),
                       highlight=2, low=left, high=right)
            sort(left, mid)
            sort(mid + 1, right)
            merge(left, mid, right)

    sort(0, len(work) - 1)
    _sorted_done(rec, work)
    return rec.steps


# ═════════════════════════════════════════════════════════════════
#  SEARCHING
# ═════════════════════════════════════════════════════════════════
def linear_search(array, target):
    rec  = _Recorder()
    work = list(array)

    for i, el in enumerate(work):
        rec.record("check", f"Checking element at index {i}: {el.value}",
                   _frame(work, checking={i}), highlight=1, index=i)
        if el.value == target:
            rec.record("found", f"Target {target} found at index {i}! 🎉",
                       _frame(work, found={i}), highlight=2, found=i)
            return rec.steps

    rec.record("done", f"Target {target} not found in the array",
               _frame(work), highlight=5, found=None)
    return rec.steps


def binary_search(array, target):
    """
    Leftmost binary search over an ascending array.

    A match does not stop the search: it is remembered and the window
    continues to the left, so the reported index is the first
    occurrence of ``target``.
    """
    rec    = _Recorder()
    work   = list(array)
    left   = 0
    right  = len(work) - 1
    result = None

    while left <= right:
        mid = left + (right - left) // 2
        rec.record("check",
                   f"Searching in range [{left}, {right}], checking middle element "
                   f"at index {mid}: {work[mid].value}",
                   _frame(work, in_range=range(left, right + 1), checking={mid}),
                   highlight=2, left=left, right=right, mid=mid)

        value = work[mid].value
        if value == target:
            result = mid
            right  = mid - 1
            desc, line = (f"{value} == {target} at index {mid}, "
                          f"looking for an earlier occurrence in the left half"), 3
        elif value < target:
            left = mid + 1
            desc, line = f"{value} < {target}, searching right half", 4
        else:
            right = mid - 1
            desc, line = f"{value} > {target}, searching left half", 5

        rec.record("narrow", desc, _frame(work, in_range=range(left, right + 1)),
                   highlight=line, left=left, right=right, candidate=result)

    if result is not None:
        rec.record("found", f"Target {target} found at index {result}! 🎉",
                   _frame(work, found={result}), highlight=7, found=result)
    else:
        rec.record("done", f"Target {target} not found in the array",
                   _frame(work), highlight=7, found=None)
    return rec.steps


# ═════════════════════════════════════════════════════════════════
#  TREE TRAVERSAL
#
#  The walk is a generator of events ``(action, node, desc, line,
#  aux)``; ``_replay_tree`` turns the events into snapshots,
#  accumulating the visit order locally.
# ═════════════════════════════════════════════════════════════════
def _inorder_events(node):
    if node.left:
        yield "move", node, f"Moving to left child of {node.value}", 2, None
        yield from _inorder_events(node.left)
    yield "visit", node, f"Visiting node {node.value}", 3, None
    if node.right:
        yield "move", node, f"Moving to right child of {node.value}", 4, None
        yield from _inorder_events(node.right)


def _preorder_events(node):
    yield "visit", node, f"Visiting node {node.value}", 2, None
    if node.left:
        yield "move", node, f"Moving to left child of {node.value}", 3, None
        yield from _preorder_events(node.left)
    if node.right:
        yield "move", node, f"Moving to right child of {node.value}", 4, None
        yield from _preorder_events(node.right)


def _postorder_events(node):
    if node.left:
        yield "move", node, f"Moving to left child of {node.value}", 2, None
        yield from _postorder_events(node.left)
    if node.right:
        yield "move", node, f"Moving to right child of {node.value}", 3, None
        yield from _postorder_events(node.right)
    yield "visit", node, f"Visiting node {node.value}", 4, None


def _bfs_events(root):
    queue = deque([root])
    yield ("start", None, "Starting BFS traversal - adding root to queue", 1,
           Auxiliary.queue([root.value]))
    while queue:
        node = queue.popleft()
        yield ("visit", node, f"Visiting node {node.value} (dequeued from front)", 4,
               Auxiliary.queue(n.value for n in queue))
        for child, line, side in ((node.left, 5, "left"), (node.right, 6, "right")):
            if child:
                queue.append(child)
                yield ("enqueue", node, f"Adding {side} child {child.value} to queue",
                       line, Auxiliary.queue(n.value for n in queue))


def _dfs_events(root):
    stack = [root]
    yield ("start", None, "Starting DFS traversal - adding root to stack", 1,
           Auxiliary.stack([root.value]))
    while stack:
        node = stack.pop()
        yield ("visit", node, f"Visiting node {node.value} (popped from stack)", 4,
               Auxiliary.stack(n.value for n in stack))
        # Right first so the left child is popped (visited) first.
        for child, line, side in ((node.right, 5, "right"), (node.left, 6, "left")):
            if child:
                stack.append(child)
                yield ("push", node, f"Adding {side} child {child.value} to stack",
                       line, Auxiliary.stack(n.value for n in stack))


_TREE_WALKS = {
    "inorder":   ("In-order", _inorder_events),
    "preorder":  ("Pre-order", _preorder_events),
    "postorder": ("Post-order", _postorder_events),
    "bfs":       ("BFS", _bfs_events),
    "dfs":       ("DFS", _dfs_events),
}


def _replay_tree(tree, kind):
    label, walk = _TREE_WALKS[kind]
    rec   = _Recorder()
    nodes = [(n.id, n.value) for n in tree.nodes()]
    root  = tree.root.id if tree.root else None
    order = []

    def frame(current):
        seen = set(order)
        return make_snapshot(nodes, lambda _i, key: (
            ([START] if key == root else [])
            + ([VISITING] if key == current else [])
            + ([VISITED] if key in seen else [])))

    if root is None:
        rec.record("done", "Tree is empty, nothing to traverse.", (), order=[])
        return rec.steps

    if kind in ("inorder", "preorder", "postorder"):
        rec.record("start", f"Starting {label.lower()} traversal at root {tree.root.value}",
                   frame(None), highlight=0)

    for action, node, desc, line, aux in walk(tree.root):
        if action == "visit":
            order.append(node.id)
        current = node.id if node else None
        rec.record(action, desc, frame(current), highlight=line, aux=aux,
                   visited=order, current=current)

    value_of = dict(nodes)
    values   = [value_of[key] for key in order]
    rec.record("done",
               f"{label} traversal complete: {', '.join(str(v) for v in values)}",
               frame(None), visited=order, order=values)
    return rec.steps


def inorder_traversal(tree):
    return _replay_tree(tree, "inorder")


def preorder_traversal(tree):
    return _replay_tree(tree, "preorder")


def postorder_traversal(tree):
    return _replay_tree(tree, "postorder")


def tree_bfs(tree):
    return _replay_tree(tree, "bfs")


def tree_dfs(tree):
    return _replay_tree(tree, "dfs")


# ═════════════════════════════════════════════════════════════════
#  GRAPH TRAVERSAL
#
#  Neighbours come from ``Graph.neighbors`` in ascending id order.
#  Snapshot elements are graph nodes in input order; for BFS/DFS
#  the value is the node label, for Dijkstra the tentative distance.
# ═════════════════════════════════════════════════════════════════
def _graph_frame(graph, start, end, current, visited, values=None):
    seen = set(visited)

    def roles(_i, key):
        out = []
        if key == start:
            out.append(START)
        if end is not None and key == end:
            out.append(END)
        if key == current:
            out.append(VISITING)
        if key in seen:
            out.append(VISITED)
        return out

    items = ((n, values[n] if values is not None else n) for n in graph.nodes)
    return make_snapshot(items, roles)


def graph_bfs(graph, start, end=None):
    rec     = _Recorder()
    queue   = deque([start])
    visited = []

    rec.record("start", f"Starting BFS from node {start}",
               _graph_frame(graph, start, end, None, visited),
               highlight=1, aux=Auxiliary.queue(queue))

    while queue:
        node = queue.popleft()
        visited.append(node)
        rec.record("visit", f"Visiting node {node}",
                   _graph_frame(graph, start, end, node, visited),
                   highlight=6, aux=Auxiliary.queue(queue), visited=visited, current=node)

        for nb, _w in graph.neighbors(node):
            if nb not in visited and nb not in queue:
                queue.append(nb)
                rec.record("enqueue", f"Adding neighbor {nb} to queue",
                           _graph_frame(graph, start, end, node, visited),
                           highlight=9, aux=Auxiliary.queue(queue),
                           visited=visited, current=node)

    names = ", ".join(str(n) for n in visited)
    rec.record("done", f"BFS traversal completed! Visited {names}",
               _graph_frame(graph, start, end, None, visited),
               visited=visited, order=list(visited))
    return rec.steps


def graph_dfs(graph, start, end=None):
    rec     = _Recorder()
    stack   = [start]
    visited = []

    rec.record("start", f"Starting DFS from node {start}",
               _graph_frame(graph, start, end, None, visited),
               highlight=1, aux=Auxiliary.stack(stack))

    while stack:
        node = stack.pop()
        if node in visited:
            rec.record("skip", f"Node {node} already visited, skipping",
                       _graph_frame(graph, start, end, None, visited),
                       highlight=5, aux=Auxiliary.stack(stack), visited=visited)
            continue

        visited.append(node)
        rec.record("visit", f"Visiting node {node}",
                   _graph_frame(graph, start, end, node, visited),
                   highlight=6, aux=Auxiliary.stack(stack), visited=visited, current=node)

        # Pushed in descending order so the smallest id is explored first.
        for nb, _w in reversed(graph.neighbors(node)):
            if nb not in visited:
                stack.append(nb)
                rec.record("push", f"Adding neighbor {nb} to stack",
                           _graph_frame(graph, start, end, node, visited),
                           highlight=9, aux=Auxiliary.stack(stack),
                           visited=visited, current=node)

    names = ", ".join(str(n) for n in visited)
    rec.record("done", f"DFS traversal completed! Visited {names}",
               _graph_frame(graph, start, end, None, visited),
               visited=visited, order=list(visited))
    return rec.steps


def dijkstra(graph, start, end=None):
    """
    Dijkstra's shortest paths from ``start``.

    The next node is the unvisited one with the smallest tentative
    distance; ties go to the node listed first in ``graph.nodes``.
    Nodes that stay unreachable keep ``INFINITY``.
    """
    rec       = _Recorder()
    dist      = {n: INFINITY for n in graph.nodes}
    dist[start] = 0
    prev      = {}
    visited   = []
    unvisited = list(graph.nodes)

    rec.record("start", f"Initializing distances from {start}",
               _graph_frame(graph, start, end, None, visited, dist),
               highlight=4, aux=Auxiliary.distances(dist))

    while unvisited:
        current = min(unvisited, key=lambda n: dist[n])   # first minimum wins
        if dist[current] == INFINITY:
            break
        unvisited.remove(current)
        visited.append(current)
        rec.record("visit", f"Visiting node {current} with distance {dist[current]}",
                   _graph_frame(graph, start, end, current, visited, dist),
                   highlight=9, aux=Auxiliary.distances(dist),
                   visited=visited, current=current)

        for nb, weight in graph.neighbors(current):
            if nb in visited:
                continue
            new_dist = dist[current] + weight
            if new_dist < dist[nb]:
                dist[nb] = new_dist
                prev[nb] = current
                rec.record("relax", f"Updated distance to {nb}: {new_dist}",
                           _graph_frame(graph, start, end, current, visited, dist),
                           highlight=13, aux=Auxiliary.distances(dist),
                           visited=visited, current=current, node=nb, distance=new_dist)

    extra = {"distances": dict(dist)}
    desc  = "Dijkstra's algorithm completed!"
    if end is not None:
        path = _walk_back(prev, start, end) if dist[end] != INFINITY else []
        extra["path"] = path
        if path:
            desc += f" Shortest path to {end}: {' → '.join(str(n) for n in path)} ({dist[end]})"
        else:
            desc += f" {end} is unreachable from {start}."
    unreachable = [n for n in graph.nodes if dist[n] == INFINITY]
    if unreachable:
        extra["unreachable"] = unreachable

    rec.record("done", desc, _graph_frame(graph, start, end, None, visited, dist),
               visited=visited, **extra)
    return rec.steps


def _walk_back(prev, start, end):
    path = [end]
    while path[-1] != start:
        path.append(prev[path[-1]])
    return path[::-1]


# ═════════════════════════════════════════════════════════════════
#  REGISTRY
# ═════════════════════════════════════════════════════════════════
TRACERS = {
    "sorting": {
        "bubble":    bubble_sort,
        "insertion": insertion_sort,
        "selection": selection_sort,
        "quick":     quick_sort,
        "merge":     merge_sort,
    },
    "searching": {
        "linear": linear_search,
        "binary": binary_search,
    },
    "trees": {
        "inorder":   inorder_traversal,
        "preorder":  preorder_traversal,
        "postorder": postorder_traversal,
        "bfs":       tree_bfs,
        "dfs":       tree_dfs,
    },
    "graphs": {
        "bfs":      graph_bfs,
        "dfs":      graph_dfs,
        "dijkstra": dijkstra,
    },
}


def get_tracer(family, algorithm):
    """
    Look up a tracer function.

    Raises:
        InvalidInputError: unknown family or algorithm.
    """
    try:
        algorithms = TRACERS[family]
    except KeyError:
        raise InvalidInputError(
            f"Unknown algorithm family {family!r}; "
            f"choose one of {', '.join(TRACERS)}") from None
    try:
        return algorithms[algorithm]
    except KeyError:
        raise InvalidInputError(
            f"Unknown {family} algorithm {algorithm!r}; "
            f"choose one of {', '.join(algorithms)}") from None


def trace(family, algorithm, structure, **params):
    """Run ``algorithm`` on ``structure`` and return its full step list."""
    steps = get_tracer(family, algorithm)(structure, **params)
    logger.debug("Traced %s/%s: %d steps", family, algorithm, len(steps))
    return steps


# ═════════════════════════════════════════════════════════════════
#  TRACE QUERIES
# ═════════════════════════════════════════════════════════════════
def count_comparisons(steps):
    return sum(1 for s in steps if s.action == "compare")


def count_swaps(steps):
    return sum(1 for s in steps if s.action == "swap")


def search_result(steps):
    """Index reported by a search trace, or None when not found."""
    return steps[-1].extra.get("found") if steps else None


def visited_order(steps):
    """Node keys in visit order, as recorded by the terminal step."""
    return list(steps[-1].visited) if steps else []


def final_distances(steps):
    """Node → final distance of a Dijkstra trace."""
    return {e.key: e.value for e in steps[-1].snapshot} if steps else {}


def shortest_path(steps):
    return list(steps[-1].extra.get("path", [])) if steps else []
